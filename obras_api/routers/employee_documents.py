from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel

from ..config import settings
from ..dependencies.auth import AuthContext, require_user
from ..dependencies.services import get_employee_uploader, get_signed_url_broker
from ..models import EmployeeDocType
from ..services.doc_status import missing_employee_doc_types
from ..services.errors import DocumentError
from ..services.signed_urls import SignedUrlBroker
from ..services.uploads import EmployeeDocumentUploader
from .common import api_error, http_error, read_upload, serialize_employee_document

router = APIRouter()

logger = logging.getLogger(__name__)


class EmployeeDocDeleteRequest(BaseModel):
    employeeId: Optional[str] = None
    docType: Optional[str] = None


@router.get("/employee-docs")
def list_employee_documents(
    employee_id: Optional[str] = Query(default=None, alias="employeeId"),
    context: AuthContext = Depends(require_user),
    uploader: EmployeeDocumentUploader = Depends(get_employee_uploader),
    broker: SignedUrlBroker = Depends(get_signed_url_broker),
) -> dict:
    if not employee_id:
        raise api_error(400, "employeeId query parameter is required.")

    try:
        employee = uploader.repo.require_employee(employee_id)
        documents = uploader.repo.list_for_employee(employee.id)
    except DocumentError as exc:
        raise http_error(exc) from exc

    signed = broker.sign_many((doc.doc_type, doc.storage_bucket, doc.storage_path) for doc in documents)
    signed_urls = {doc_type: url.url for doc_type, url in signed.items()}

    return {
        "documents": [serialize_employee_document(doc) for doc in documents],
        "signed_urls": signed_urls,
        "profile_photo_url": signed_urls.get(EmployeeDocType.PROFILE_PHOTO.value),
        "missing": missing_employee_doc_types(documents),
    }


@router.post("/employee-docs")
def upload_employee_document(
    employee_id: Optional[str] = Form(default=None, alias="employeeId"),
    doc_type: Optional[str] = Form(default=None, alias="docType"),
    file: Optional[UploadFile] = File(default=None),
    context: AuthContext = Depends(require_user),
    uploader: EmployeeDocumentUploader = Depends(get_employee_uploader),
) -> dict:
    if not employee_id or not doc_type or file is None:
        raise api_error(400, "Missing required fields (employeeId, docType, file).")

    try:
        payload = read_upload(file, uploader.max_upload_bytes)
        result = uploader.upload(employee_id, doc_type, payload)
    except DocumentError as exc:
        raise http_error(exc) from exc

    document = result.document
    logger.info(
        "employee_document_upload_accepted user_id=%s employee_id=%s doc_type=%s",
        context.user_id,
        document.employee_id,
        document.doc_type,
    )
    return {
        "document": serialize_employee_document(document),
        "signed_url": result.signed_url.url if result.signed_url else None,
        "bucket": document.storage_bucket,
        "path": document.storage_path,
        "fileName": document.file_name,
        "mimeType": document.mime_type,
        "fileSize": document.file_size,
        "warnings": result.warnings,
    }


@router.delete("/employee-docs")
def delete_employee_document(
    body: Optional[EmployeeDocDeleteRequest] = None,
    context: AuthContext = Depends(require_user),
    uploader: EmployeeDocumentUploader = Depends(get_employee_uploader),
) -> dict:
    if body is None or not body.employeeId or not body.docType:
        raise api_error(400, "Missing required fields (employeeId, docType).")

    try:
        deleted = uploader.delete(body.employeeId, body.docType)
    except DocumentError as exc:
        raise http_error(exc) from exc

    if deleted is None:
        return {"ok": True, "message": "Document did not exist."}

    logger.info(
        "employee_document_delete_accepted user_id=%s employee_id=%s doc_type=%s",
        context.user_id,
        deleted.employee_id,
        deleted.doc_type,
    )
    return {"ok": True}


@router.get("/employee-photo")
def employee_photo_signed_url(
    path: Optional[str] = Query(default=None),
    expires_in: Optional[int] = Query(default=None, alias="expiresIn"),
    context: AuthContext = Depends(require_user),
    broker: SignedUrlBroker = Depends(get_signed_url_broker),
) -> dict:
    if not path:
        raise api_error(400, "Missing path")
    if not path.startswith("employees/") or ".." in path.split("/"):
        raise api_error(400, "Invalid path")

    try:
        signed = broker.sign(settings.employee_docs_bucket, path, expires_in)
    except DocumentError as exc:
        raise http_error(exc) from exc
    return {"signedUrl": signed.url, "expiresAt": signed.expires_at.isoformat()}


@router.get("/employees/{employee_id}/photo")
def employee_photo(
    employee_id: str,
    expires_in: Optional[int] = Query(default=None, alias="expiresIn"),
    context: AuthContext = Depends(require_user),
    uploader: EmployeeDocumentUploader = Depends(get_employee_uploader),
    broker: SignedUrlBroker = Depends(get_signed_url_broker),
) -> dict:
    try:
        path = uploader.resolve_photo_path(employee_id)
    except DocumentError as exc:
        raise http_error(exc) from exc

    if path is None:
        return {"path": None, "signedUrl": None}

    signed = broker.try_sign(settings.employee_docs_bucket, path, expires_in)
    return {
        "path": path,
        "signedUrl": signed.url if signed else None,
        "expiresAt": signed.expires_at.isoformat() if signed else None,
    }
