"""
Object storage for uploaded images: S3-compatible buckets and in-memory testing.
"""

from __future__ import annotations

import base64
import binascii
import mimetypes
import re
import uuid
from dataclasses import dataclass
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from clubsite.errors import RemoteOperationError

DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w-]+=[^;,]*)*)(?P<b64>;base64)?,(?P<payload>.*)$",
    re.DOTALL,
)

# Presigned GET urls are capped at seven days with SigV4.
MAX_PRESIGN_SECONDS = 7 * 24 * 3600


class StorageClient(Protocol):
    """Defines the operations the repositories need from object storage."""

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> str:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = None

    def __post_init__(self):
        if self.stored_objects is None:
            self.stored_objects = {}

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> str:
        self.stored_objects[path] = data
        return f"{self.base_url}/{path}"


@dataclass
class CosStorageClient:
    """
    S3-compatible storage client (Tencent COS, AWS S3, MinIO).

    If `public_base_url` is set the bucket is assumed to be publicly readable
    and uploads return `<public_base_url>/<path>`; otherwise a presigned GET
    url with the maximum lifetime is returned.
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    public_base_url: Optional[str] = None

    def __post_init__(self):
        # Use virtual-hosted style addressing to satisfy COS requirements.
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def upload_bytes(self, path: str, data: bytes, content_type: str) -> str:
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise RemoteOperationError(f"Upload of {path} failed: {e}") from e
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{path}"
        return self.presign_get(path, expires_in=MAX_PRESIGN_SECONDS)

    def presign_get(self, path: str, expires_in: int = 3600) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=expires_in,
        )


def is_data_uri(value) -> bool:
    return isinstance(value, str) and value.startswith("data:")


def parse_data_uri(value: str) -> tuple[str, bytes]:
    """
    Decode a `data:` URI into (content_type, bytes).

    Raises ValueError for strings that are not well-formed data URIs.
    """
    match = DATA_URI_PATTERN.match(value)
    if not match:
        raise ValueError("Not a data URI")
    content_type = match.group("mime") or "application/octet-stream"
    payload = match.group("payload")
    if match.group("b64"):
        try:
            return content_type, base64.b64decode(payload, validate=False)
        except binascii.Error as e:
            raise ValueError("Invalid base64 payload in data URI") from e
    return content_type, payload.encode("utf-8")


def upload_inline_data(storage: StorageClient, prefix: str, value: str) -> str:
    """Upload an inline data URI under `prefix/` and return its retrievable url."""
    content_type, data = parse_data_uri(value)
    extension = mimetypes.guess_extension(content_type) or ".bin"
    path = f"{prefix}/{uuid.uuid4().hex}{extension}"
    return storage.upload_bytes(path, data, content_type)
