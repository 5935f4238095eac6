"""
Configuration and settings for the club site backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Remote document store (Firestore)
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_credentials_path: Optional[str] = Field(default=None)
    firebase_api_key: Optional[str] = Field(default=None)

    # S3-compatible object storage for uploaded images
    storage_bucket: Optional[str] = Field(default=None)
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_public_base_url: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Local fallback store
    local_store_url: str = Field(default="sqlite:///clubsite_local.db")
    local_store_redis_url: Optional[str] = Field(default=None)
    local_store_namespace: str = Field(default="clubsite")

    # Development toggles
    use_local_backend: bool = Field(default=False)
    use_in_memory_backends: bool = Field(default=False)

    # Notifications (EmailJS + Twilio)
    emailjs_service_id: Optional[str] = Field(default=None)
    emailjs_template_id: Optional[str] = Field(default=None)
    emailjs_rsvp_template_id: Optional[str] = Field(default=None)
    emailjs_public_key: Optional[str] = Field(default=None)
    twilio_account_sid: Optional[str] = Field(default=None)
    twilio_auth_token: Optional[str] = Field(default=None)
    twilio_from_number: Optional[str] = Field(default=None)
    notification_workers: int = Field(default=2, ge=1)
    club_name: str = Field(default="Romanian Kitchener Folk Club")

    # Instagram Basic Display API
    instagram_access_token: Optional[str] = Field(default=None)
    instagram_sync_import: bool = Field(default=False)

    @property
    def remote_configured(self) -> bool:
        return bool(self.firebase_project_id) and not (
            self.use_local_backend or self.use_in_memory_backends
        )

    @property
    def email_configured(self) -> bool:
        return all(
            (
                self.emailjs_service_id,
                self.emailjs_template_id,
                self.emailjs_public_key,
            )
        )

    @property
    def sms_configured(self) -> bool:
        return all(
            (
                self.twilio_account_sid,
                self.twilio_auth_token,
                self.twilio_from_number,
            )
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
