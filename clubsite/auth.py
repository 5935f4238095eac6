"""
Authentication providers and mapping of authenticated principals to users.
"""

from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

import requests
from firebase_admin import auth as firebase_auth

from clubsite.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    RemoteOperationError,
)
from clubsite.models import User
from clubsite.repositories import UserRepository

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts:{method}"
REQUEST_TIMEOUT = 15  # seconds


@dataclass
class Principal:
    """An authenticated identity as reported by the auth provider."""

    id: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    token: Optional[str] = None


class AuthProvider(Protocol):
    def sign_in(self, email: str, secret: str) -> Principal:
        ...

    def sign_up(self, email: str, secret: str, display_name: str) -> Principal:
        ...

    def sign_out(self, token: str) -> None:
        ...

    def verify_token(self, token: str) -> Principal:
        ...


class LocalAuthProvider:
    """
    Demo-mode provider used with the local fallback store.

    Accounts are the stored user records. Passwords are not stored: `admin`
    unlocks admin e-mails, `member` unlocks member e-mails and `password`
    unlocks any account. Session tokens live in process memory.
    """

    def __init__(self, users: UserRepository):
        self.users = users
        self._sessions: Dict[str, Principal] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _secret_accepted(email: str, secret: str) -> bool:
        return (
            ("admin" in email and secret == "admin")
            or ("member" in email and secret == "member")
            or secret == "password"
        )

    def _open_session(self, user: User) -> Principal:
        principal = Principal(
            id=user.id,
            email=user.email,
            display_name=user.name,
            photo_url=user.avatar,
            token=secrets.token_urlsafe(32),
        )
        with self._lock:
            self._sessions[principal.token] = principal
        return principal

    def sign_in(self, email: str, secret: str) -> Principal:
        user = self.users.find_by_email(email)
        if user is None or not self._secret_accepted(email, secret):
            raise InvalidCredentialsError("Invalid credentials")
        return self._open_session(user)

    def sign_up(self, email: str, secret: str, display_name: str) -> Principal:
        user = self.users.register_user(display_name, email)
        return self._open_session(user)

    def sign_out(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def verify_token(self, token: str) -> Principal:
        with self._lock:
            principal = self._sessions.get(token)
        if principal is None:
            raise InvalidCredentialsError("Unknown or expired session")
        return principal


class FirebaseAuthProvider:
    """
    Firebase Authentication: password sign-in through the Identity Toolkit
    REST API, token verification through firebase_admin.
    """

    def __init__(self, api_key: str, app=None):
        if not api_key:
            raise ValueError("firebase_api_key is required for FirebaseAuthProvider")
        self.api_key = api_key
        self.app = app

    def _call(self, method: str, payload: dict) -> dict:
        try:
            response = requests.post(
                IDENTITY_TOOLKIT_URL.format(method=method),
                params={"key": self.api_key},
                json=payload,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise RemoteOperationError(f"Identity service unreachable: {e}") from e
        if response.status_code == 400:
            message = response.json().get("error", {}).get("message", "")
            if message.startswith("EMAIL_EXISTS"):
                raise DuplicateEmailError(payload.get("email", ""))
            raise InvalidCredentialsError(message or "Invalid credentials")
        if not response.ok:
            raise RemoteOperationError(
                f"Identity service returned {response.status_code}"
            )
        return response.json()

    @staticmethod
    def _principal(body: dict) -> Principal:
        return Principal(
            id=body["localId"],
            email=body.get("email", ""),
            display_name=body.get("displayName") or None,
            photo_url=body.get("profilePicture") or body.get("photoUrl"),
            token=body.get("idToken"),
        )

    def sign_in(self, email: str, secret: str) -> Principal:
        body = self._call(
            "signInWithPassword",
            {"email": email, "password": secret, "returnSecureToken": True},
        )
        return self._principal(body)

    def sign_up(self, email: str, secret: str, display_name: str) -> Principal:
        body = self._call(
            "signUp", {"email": email, "password": secret, "returnSecureToken": True}
        )
        if display_name:
            self._call(
                "update",
                {"idToken": body["idToken"], "displayName": display_name},
            )
            body["displayName"] = display_name
        return self._principal(body)

    def sign_out(self, token: str) -> None:
        principal = self.verify_token(token)
        firebase_auth.revoke_refresh_tokens(principal.id, app=self.app)

    def verify_token(self, token: str) -> Principal:
        try:
            claims = firebase_auth.verify_id_token(token, app=self.app)
        except (firebase_auth.InvalidIdTokenError, ValueError) as e:
            raise InvalidCredentialsError("Invalid or expired token") from e
        return Principal(
            id=claims["uid"],
            email=claims.get("email", ""),
            display_name=claims.get("name"),
            photo_url=claims.get("picture"),
            token=token,
        )


class IdentityResolver:
    """Maps a principal to its stored user; unknown principals become members."""

    def __init__(self, users: UserRepository):
        self.users = users

    def resolve(self, principal: Principal) -> User:
        user = self.users.get(principal.id)
        if user is not None:
            return user
        name = principal.display_name or principal.email.split("@")[0] or "Member"
        logger.info("Creating default member profile for %s", principal.id)
        return self.users.create_profile(
            principal.id, name, principal.email, avatar=principal.photo_url
        )
