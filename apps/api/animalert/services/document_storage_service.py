"""Document storage for generated petitions and citizen evidence."""

from __future__ import annotations

import logging
import mimetypes
import os
import re
import uuid
from dataclasses import dataclass

from botocore.exceptions import BotoCoreError, ClientError

from animalert.core.config import settings
from animalert.core.constants import COMPLAINTS_PREFIX, UPLOADS_PREFIX
from animalert.db.enums import StorageBackend
from animalert.services.storage_client import get_s3_client

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

PDF_CONTENT_TYPE = "application/pdf"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

ACCEPTED_IMAGE_TYPES = {
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/svg+xml",
    "image/gif",
    "image/webp",
    "image/tiff",
    "image/bmp",
    "image/heic",
}
ACCEPTED_VIDEO_TYPES = {
    "video/mp4",
    "video/mpeg",
    "video/quicktime",
    "video/webm",
    "video/x-matroska",
}

_UUID_PREFIX = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}-", re.IGNORECASE
)
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredDocument:
    key: str


@dataclass(frozen=True)
class StoredObject:
    key: str
    body: bytes
    content_type: str


@dataclass(frozen=True)
class UploadTicket:
    key: str
    url: str


# =============================================================================
# Storage Backend
# =============================================================================


def _get_storage_backend() -> str:
    return (settings.STORAGE_BACKEND or StorageBackend.LOCAL.value).lower()


def _get_local_storage_path() -> str:
    path = settings.LOCAL_STORAGE_PATH
    os.makedirs(path, exist_ok=True)
    return path


def _local_path(key: str) -> str:
    root = os.path.realpath(_get_local_storage_path())
    path = os.path.realpath(os.path.join(root, key))
    if not path.startswith(root + os.sep):
        raise ValueError(f"Storage key escapes storage root: {key}")
    return path


def _safe_file_name(file_name: str) -> str:
    cleaned = _UNSAFE_FILENAME_CHARS.sub("-", os.path.basename(file_name)).strip("-.")
    return cleaned or "file"


def display_name_for_key(key: str) -> str:
    """Human file name for a stored key (drops folder and uuid prefix)."""
    base = key.rsplit("/", 1)[-1]
    return _UUID_PREFIX.sub("", base) or base


# =============================================================================
# File Operations
# =============================================================================


def upload_pdf_buffer(buffer: bytes, file_name: str) -> StoredDocument | None:
    """
    Store a generated PDF under complaints/{uuid}-{file_name}.pdf.

    Returns None when the backend rejects the upload; the caller decides
    whether that is fatal.
    """
    name = _safe_file_name(file_name)
    if not name.lower().endswith(".pdf"):
        name = f"{name}.pdf"
    key = f"{COMPLAINTS_PREFIX}{uuid.uuid4()}-{name}"

    try:
        if _get_storage_backend() == StorageBackend.S3.value:
            get_s3_client().put_object(
                Bucket=settings.S3_BUCKET,
                Key=key,
                Body=buffer,
                ContentType=PDF_CONTENT_TYPE,
            )
        else:
            path = _local_path(key)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(buffer)
    except (BotoCoreError, ClientError, OSError):
        logger.exception("PDF upload failed for key=%s", key)
        return None

    logger.info("Stored petition PDF key=%s size=%s", key, len(buffer))
    return StoredDocument(key=key)


def get_object(key: str) -> StoredObject | None:
    """Fetch an object's bytes and content type, or None if it is missing."""
    if _get_storage_backend() == StorageBackend.S3.value:
        try:
            obj = get_s3_client().get_object(Bucket=settings.S3_BUCKET, Key=key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in ("NoSuchKey", "404"):
                return None
            raise
        return StoredObject(
            key=key,
            body=obj["Body"].read(),
            content_type=obj.get("ContentType") or DEFAULT_CONTENT_TYPE,
        )

    path = _local_path(key)
    if not os.path.exists(path):
        return None
    with open(path, "rb") as f:
        body = f.read()
    content_type = mimetypes.guess_type(key)[0] or DEFAULT_CONTENT_TYPE
    return StoredObject(key=key, body=body, content_type=content_type)


def delete_object(key: str) -> None:
    """Delete an object (best-effort; used to clean up after a rollback)."""
    try:
        if _get_storage_backend() == StorageBackend.S3.value:
            get_s3_client().delete_object(Bucket=settings.S3_BUCKET, Key=key)
        else:
            path = _local_path(key)
            if os.path.exists(path):
                os.remove(path)
    except (BotoCoreError, ClientError, OSError, ValueError):
        logger.warning("Failed to delete stored object key=%s", key, exc_info=True)


def validate_upload(file_type: str, file_size: int) -> None:
    """Raise ValueError when an evidence upload is not an accepted image/video."""
    if file_type in ACCEPTED_IMAGE_TYPES:
        limit = settings.IMAGE_MAX_UPLOAD_BYTES
    elif file_type in ACCEPTED_VIDEO_TYPES:
        limit = settings.VIDEO_MAX_UPLOAD_BYTES
    else:
        raise ValueError("Tip fișier invalid")
    if file_size > limit:
        raise ValueError(f"Fișierul nu trebuie să depășească {limit // (1024 * 1024)}MB")


def create_upload_url(file_name: str, file_type: str, file_size: int) -> UploadTicket:
    """Issue a presigned PUT URL for citizen evidence under uploads/."""
    validate_upload(file_type, file_size)
    key = f"{UPLOADS_PREFIX}{uuid.uuid4()}-{_safe_file_name(file_name)}"

    if _get_storage_backend() == StorageBackend.S3.value:
        url = get_s3_client().generate_presigned_url(
            "put_object",
            Params={
                "Bucket": settings.S3_BUCKET,
                "Key": key,
                "ContentType": file_type,
                "ContentLength": file_size,
            },
            ExpiresIn=settings.UPLOAD_URL_EXPIRY_SECONDS,
        )
        return UploadTicket(key=key, url=url)

    # Local: the dev server accepts the PUT itself
    return UploadTicket(key=key, url=f"/uploads/local/{key}")


def store_local_upload(key: str, body: bytes) -> None:
    """Write an evidence upload for the local backend (dev only)."""
    if not key.startswith(UPLOADS_PREFIX):
        raise ValueError(f"Invalid upload key: {key}")
    path = _local_path(key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(body)
