from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config

from ..config import settings


def s3_client() -> Any:
    """Build an S3 client; a custom endpoint (MinIO, S3-compatible gateways) forces path-style keys."""
    s3_options: dict[str, Any] = {}
    if settings.aws.s3_endpoint_url:
        s3_options["addressing_style"] = "path"

    kwargs: dict[str, Any] = {
        "region_name": settings.aws.region,
        "config": Config(retries={"max_attempts": 3}, signature_version="s3v4", s3=s3_options or None),
    }
    if settings.aws.access_key_id and settings.aws.secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws.access_key_id
        kwargs["aws_secret_access_key"] = settings.aws.secret_access_key
    if settings.aws.s3_endpoint_url:
        kwargs["endpoint_url"] = settings.aws.s3_endpoint_url
    return boto3.client("s3", **kwargs)
