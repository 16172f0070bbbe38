from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import HTTPException, UploadFile

from ..models import EmployeeDocument, ObraDocument
from ..services.doc_status import doc_status, doc_type_label
from ..services.errors import (
    DocumentError,
    DocumentNotFoundError,
    OwnerNotFoundError,
    RecordStoreError,
    StorageError,
    StorageNotFoundError,
    UploadValidationError,
)
from ..services.signed_urls import SignedUrl
from ..services.validation import FilePayload, too_large

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 1024 * 1024


def read_upload(file: Optional[UploadFile], max_bytes: int) -> FilePayload:
    """Read the multipart file, rejecting it as soon as it exceeds ``max_bytes``."""
    if file is None or not file.filename:
        raise UploadValidationError("A file is required.")

    declared_size = file.size
    if declared_size is not None and declared_size > max_bytes:
        raise too_large(max_bytes)

    chunks: list[bytes] = []
    total_bytes = 0
    while True:
        chunk = file.file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total_bytes += len(chunk)
        if total_bytes > max_bytes:
            raise too_large(max_bytes)
        chunks.append(chunk)

    return FilePayload(
        content=b"".join(chunks),
        file_name=file.filename,
        mime_type=file.content_type,
        size=declared_size if declared_size is not None else total_bytes,
    )


def api_error(status_code: int, message: str, details: Optional[str] = None) -> HTTPException:
    """Errors carry ``{"error": ..., "details"?: ...}`` under FastAPI's ``detail`` key."""
    body = {"error": message}
    if details is not None:
        body["details"] = details
    return HTTPException(status_code=status_code, detail=body)


def http_error(exc: DocumentError) -> HTTPException:
    if isinstance(exc, UploadValidationError):
        return api_error(400, str(exc))
    if isinstance(exc, (OwnerNotFoundError, DocumentNotFoundError, StorageNotFoundError)):
        return api_error(404, str(exc))
    if isinstance(exc, StorageError):
        logger.error("storage_error %s", exc)
        return api_error(500, "Storage operation failed", str(exc))
    if isinstance(exc, RecordStoreError):
        logger.error("record_store_error %s", exc)
        return api_error(500, "Database operation failed", str(exc))
    return api_error(500, "Unexpected document error", str(exc))


def _isoformat(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_signed_url(signed: Optional[SignedUrl]) -> Optional[dict[str, str]]:
    if signed is None:
        return None
    return {"url": signed.url, "expires_at": signed.expires_at.isoformat()}


def serialize_obra_document(document: ObraDocument) -> dict[str, Any]:
    return {
        "id": str(document.id),
        "obra_id": str(document.obra_id),
        "doc_type": document.doc_type,
        "doc_type_label": doc_type_label(document.doc_type),
        "title": document.title,
        "bucket": document.bucket,
        "object_path": document.object_path,
        "file_name": document.file_name,
        "mime_type": document.mime_type,
        "size_bytes": document.size_bytes,
        "uploaded_by": document.uploaded_by,
        "version": document.version,
        "is_current": bool(document.is_current),
        "ai_status": document.ai_status,
        "status": doc_status(document.ai_status),
        "notes": document.notes,
        "uploaded_at": _isoformat(document.uploaded_at),
        "created_at": _isoformat(document.created_at),
    }


def serialize_employee_document(document: EmployeeDocument) -> dict[str, Any]:
    return {
        "id": str(document.id),
        "employee_id": str(document.employee_id),
        "doc_type": document.doc_type,
        "storage_bucket": document.storage_bucket,
        "storage_path": document.storage_path,
        "file_name": document.file_name,
        "mime_type": document.mime_type,
        "file_size": document.file_size,
        "created_at": _isoformat(document.created_at),
        "updated_at": _isoformat(document.updated_at),
    }
