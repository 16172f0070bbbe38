from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from ..dependencies.auth import AuthContext, require_admin, require_user
from ..dependencies.services import get_obra_uploader, get_signed_url_broker
from ..services.doc_status import DOC_STATUSES, filter_obra_documents, summarize_obra_documents
from ..services.errors import DocumentError, DocumentNotFoundError
from ..services.signed_urls import SignedUrlBroker
from ..services.uploads import ObraDocumentUploader
from .common import api_error, http_error, read_upload, serialize_obra_document, serialize_signed_url

router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/obras/{obra_id}/documents")
def upload_obra_document(
    obra_id: str,
    doc_type: Optional[str] = Form(default=None),
    version: str = Form(default="1"),
    title: Optional[str] = Form(default=None),
    notes: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
    context: AuthContext = Depends(require_user),
    uploader: ObraDocumentUploader = Depends(get_obra_uploader),
) -> dict:
    try:
        payload = read_upload(file, uploader.max_upload_bytes)
        result = uploader.upload(
            obra_id,
            payload,
            doc_type=doc_type,
            version=version,
            title=title,
            uploaded_by=context.user_id,
            notes=notes,
        )
    except DocumentError as exc:
        raise http_error(exc) from exc

    return {
        "document": serialize_obra_document(result.document),
        "signed_url": serialize_signed_url(result.signed_url),
    }


@router.get("/obras/{obra_id}/documents")
def list_obra_documents(
    obra_id: str,
    q: Optional[str] = Query(default=None),
    doc_type: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    context: AuthContext = Depends(require_user),
    uploader: ObraDocumentUploader = Depends(get_obra_uploader),
) -> dict:
    if status and status != "all" and status not in DOC_STATUSES:
        raise api_error(400, "Invalid status filter")

    try:
        obra = uploader.repo.require_obra(obra_id)
        documents = uploader.repo.list_for_obra(obra.id)
    except DocumentError as exc:
        raise http_error(exc) from exc

    filtered = filter_obra_documents(documents, q=q, doc_type=doc_type, status=status)
    return {
        "obra": {"id": str(obra.id), "name": obra.name},
        "documents": [serialize_obra_document(doc) for doc in filtered],
        "total": len(documents),
    }


@router.get("/obras/{obra_id}/documents/summary")
def obra_documents_summary(
    obra_id: str,
    context: AuthContext = Depends(require_user),
    uploader: ObraDocumentUploader = Depends(get_obra_uploader),
) -> dict[str, str]:
    try:
        obra = uploader.repo.require_obra(obra_id)
    except DocumentError as exc:
        raise http_error(exc) from exc
    return summarize_obra_documents(uploader.repo.list_for_obra(obra.id))


@router.get("/obra-documents/{document_id}/signed-url")
def obra_document_signed_url(
    document_id: str,
    expires_in: Optional[int] = Query(default=None, alias="expiresIn"),
    download: bool = Query(default=False),
    context: AuthContext = Depends(require_user),
    uploader: ObraDocumentUploader = Depends(get_obra_uploader),
    broker: SignedUrlBroker = Depends(get_signed_url_broker),
) -> dict:
    document = uploader.repo.get(document_id)
    if document is None:
        raise http_error(DocumentNotFoundError("Document not found"))

    try:
        signed = broker.sign(
            document.bucket,
            document.object_path,
            expires_in,
            download_name=document.file_name if download else None,
        )
    except DocumentError as exc:
        logger.warning("obra_document_link_unavailable document_id=%s path=%s", document.id, document.object_path)
        raise http_error(exc) from exc

    return {"signedUrl": signed.url, "expiresAt": signed.expires_at.isoformat()}


@router.delete("/obra-documents/{document_id}")
def delete_obra_document(
    document_id: str,
    context: AuthContext = Depends(require_admin),
    uploader: ObraDocumentUploader = Depends(get_obra_uploader),
) -> dict[str, bool]:
    try:
        deleted = uploader.delete(document_id)
    except DocumentError as exc:
        raise http_error(exc) from exc

    logger.info("obra_document_delete_accepted user_id=%s document_id=%s", context.user_id, deleted.id)
    return {"ok": True}
