from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .aws import s3_client
from .errors import StorageConflictError, StorageError

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass
class StoredObject:
    bucket: str
    key: str
    size: int
    content_type: str


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class ObjectStore:
    """Thin adapter over the S3 API: write, delete, existence check and presigned reads."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client if client is not None else s3_client()

    def exists(self, bucket: str, key: str) -> bool:
        try:
            self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return False
            raise StorageError(f"Failed to inspect S3 object: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Failed to inspect S3 object: {exc}") from exc
        return True

    def put(
        self,
        bucket: str,
        key: str,
        file_obj: BinaryIO | bytes,
        content_type: Optional[str] = None,
    ) -> StoredObject:
        """Write a new object. Existing keys are never overwritten."""
        buffer: BinaryIO
        if isinstance(file_obj, (bytes, bytearray)):
            buffer = io.BytesIO(file_obj)
        else:
            buffer = file_obj
            buffer.seek(0)

        if self.exists(bucket, key):
            raise StorageConflictError(f"Object already exists: s3://{bucket}/{key}")

        content_type = content_type or "application/octet-stream"
        size = buffer.seek(0, io.SEEK_END)
        buffer.seek(0)
        try:
            self._client.upload_fileobj(buffer, bucket, key, ExtraArgs={"ContentType": content_type})
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload to S3: {exc}") from exc

        logger.info("storage_put bucket=%s key=%s size=%s", bucket, key, size)
        return StoredObject(bucket=bucket, key=key, size=size, content_type=content_type)

    def delete(self, bucket: str, key: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to delete S3 object: {exc}") from exc
        logger.info("storage_delete bucket=%s key=%s", bucket, key)

    def presign_get(
        self,
        bucket: str,
        key: str,
        expires_in: int,
        download_name: Optional[str] = None,
    ) -> str:
        params: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if download_name:
            params["ResponseContentDisposition"] = f'attachment; filename="{download_name}"'
        try:
            return self._client.generate_presigned_url("get_object", Params=params, ExpiresIn=int(expires_in))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to generate presigned URL: {exc}") from exc


def get_object_store() -> ObjectStore:
    return ObjectStore()

