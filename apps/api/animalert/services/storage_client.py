"""S3 client factory for petition PDFs and citizen uploads."""

from __future__ import annotations

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from animalert.core.config import settings

S3_RETRIES = {"max_attempts": 3, "mode": "standard"}
S3_CONNECT_TIMEOUT_SECONDS = 5
S3_READ_TIMEOUT_SECONDS = 30


def _client_config() -> Config:
    options: dict = {
        "retries": S3_RETRIES,
        "connect_timeout": S3_CONNECT_TIMEOUT_SECONDS,
        "read_timeout": S3_READ_TIMEOUT_SECONDS,
    }
    # LocalStack and MinIO usually need path-style addressing.
    addressing_style = (settings.S3_URL_STYLE or "").strip().lower()
    if addressing_style in ("path", "virtual"):
        options["s3"] = {"addressing_style": addressing_style}
    return Config(**options)


def get_s3_client() -> BaseClient:
    """S3 client for the configured bucket region and optional custom endpoint."""
    endpoint = (settings.S3_ENDPOINT_URL or "").rstrip("/") or None
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION or None,
        endpoint_url=endpoint,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        config=_client_config(),
    )
