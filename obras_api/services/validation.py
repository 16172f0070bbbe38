from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from ..models import EmployeeDocType, ObraDocType
from .errors import UploadValidationError

OBRA_ALLOWED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "image/png",
        "image/jpeg",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/msword",
        "application/zip",
        "application/x-zip-compressed",
    }
)
OBRA_ALLOWED_EXTENSIONS = frozenset({".pdf", ".png", ".jpg", ".jpeg", ".xlsx", ".xls", ".docx", ".doc", ".zip"})

IMAGE_MIME_TYPES = frozenset({"image/png", "image/jpeg", "image/webp", "image/heic"})
IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".webp", ".heic"})
EMPLOYEE_ALLOWED_MIME_TYPES = IMAGE_MIME_TYPES | {"application/pdf"}
EMPLOYEE_ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS | {".pdf"}

# Upper bound of the INTEGER version column.
MAX_VERSION = 2**31 - 1


@dataclass
class FilePayload:
    """Raw upload as declared by the client. Metadata is stored verbatim."""

    content: bytes
    file_name: str
    mime_type: Optional[str]
    size: int


def _extension(file_name: str) -> str:
    return PurePosixPath(file_name or "").suffix.lower()


def _normalized_mime(mime_type: Optional[str]) -> str:
    return (mime_type or "").split(";", 1)[0].strip().lower()


def describe_limit(max_bytes: int) -> str:
    if max_bytes >= 1024 * 1024:
        return f"{max_bytes // (1024 * 1024)}MB"
    if max_bytes >= 1024:
        return f"{max_bytes // 1024}KB"
    return f"{max_bytes} bytes"


def too_large(max_bytes: int) -> UploadValidationError:
    return UploadValidationError(f"File exceeds the maximum size ({describe_limit(max_bytes)}).")


def check_size(payload: FilePayload, max_bytes: int) -> None:
    if payload.size <= 0 or not payload.content:
        raise UploadValidationError("File is empty.")
    if payload.size > max_bytes or len(payload.content) > max_bytes:
        raise too_large(max_bytes)


def _is_allowed(payload: FilePayload, mime_types: frozenset[str], extensions: frozenset[str]) -> bool:
    return _normalized_mime(payload.mime_type) in mime_types or _extension(payload.file_name) in extensions


def parse_obra_doc_type(raw: Optional[str]) -> ObraDocType:
    try:
        return ObraDocType((raw or "").strip())
    except ValueError as exc:
        raise UploadValidationError("Invalid doc_type.") from exc


def parse_employee_doc_type(raw: Optional[str]) -> EmployeeDocType:
    try:
        return EmployeeDocType((raw or "").strip())
    except ValueError as exc:
        raise UploadValidationError("Invalid docType.") from exc


def parse_version(raw: str | int | None) -> int:
    """Versions are caller-supplied and must be positive whole numbers."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise UploadValidationError("Version must be a number greater than 0.")
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise UploadValidationError("Version must be a number greater than 0.") from exc
    if not math.isfinite(value) or value <= 0 or value != int(value) or value > MAX_VERSION:
        raise UploadValidationError("Version must be a number greater than 0.")
    return int(value)


def resolve_title(title: Optional[str], file_name: str) -> str:
    """An omitted title falls back to the file name without extension; a blank one is rejected."""
    if title is None:
        title = PurePosixPath(file_name or "").stem
    cleaned = title.strip()
    if not cleaned:
        raise UploadValidationError("Title is required.")
    return cleaned


def validate_obra_upload(payload: FilePayload, max_bytes: int) -> None:
    check_size(payload, max_bytes)
    if not _is_allowed(payload, OBRA_ALLOWED_MIME_TYPES, OBRA_ALLOWED_EXTENSIONS):
        raise UploadValidationError("File type not allowed. Upload PDF, Excel, Word, image or zip.")


def validate_employee_upload(payload: FilePayload, doc_type: EmployeeDocType, max_bytes: int) -> None:
    check_size(payload, max_bytes)
    if doc_type is EmployeeDocType.PROFILE_PHOTO:
        if not _is_allowed(payload, IMAGE_MIME_TYPES, IMAGE_EXTENSIONS):
            raise UploadValidationError("Profile photo must be an image.")
        return
    if not _is_allowed(payload, EMPLOYEE_ALLOWED_MIME_TYPES, EMPLOYEE_ALLOWED_EXTENSIONS):
        raise UploadValidationError("File type not allowed. Upload a PDF or an image.")
