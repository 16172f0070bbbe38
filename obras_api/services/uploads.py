from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Union

from sqlalchemy.orm import Session

from ..config import settings
from ..models import EmployeeDocType, EmployeeDocument, ObraDocType, ObraDocument
from ..models.obra_documents import AiStatusEnum
from .document_store import EmployeeDocumentRepository, ObraDocumentRepository
from .errors import DocumentNotFoundError, RecordStoreError, StorageError
from .metrics import record_compensation, record_delete, record_upload, record_upload_failure
from .signed_urls import SignedUrl, SignedUrlBroker
from .storage import ObjectStore
from .storage_paths import build_employee_object_path, build_obra_object_path
from .validation import (
    FilePayload,
    parse_employee_doc_type,
    parse_obra_doc_type,
    parse_version,
    resolve_title,
    validate_employee_upload,
    validate_obra_upload,
)
from .versioning import demote_current, is_versioned

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    document: Union[ObraDocument, EmployeeDocument]
    signed_url: Optional[SignedUrl] = None
    warnings: list[str] = field(default_factory=list)


class _Uploader:
    owner_type: str

    def __init__(self, store: ObjectStore, broker: SignedUrlBroker, max_upload_bytes: Optional[int] = None) -> None:
        self.store = store
        self.broker = broker
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes

    def _compensate(self, bucket: str, path: str) -> None:
        """Remove a blob whose database row never made it. Failure leaves a logged orphan."""
        try:
            self.store.delete(bucket, path)
        except StorageError:
            record_compensation(self.owner_type, succeeded=False)
            logger.error("orphaned_blob owner_type=%s bucket=%s path=%s", self.owner_type, bucket, path, exc_info=True)
            return
        record_compensation(self.owner_type, succeeded=True)
        logger.warning("compensating_delete owner_type=%s bucket=%s path=%s", self.owner_type, bucket, path)


class ObraDocumentUploader(_Uploader):
    """Uploads and deletes obra documents, keeping prior contract/quote versions as history."""

    owner_type = "obra"

    def __init__(
        self,
        db: Session,
        store: ObjectStore,
        broker: SignedUrlBroker,
        bucket: Optional[str] = None,
        max_upload_bytes: Optional[int] = None,
    ) -> None:
        super().__init__(store, broker, max_upload_bytes)
        self.repo = ObraDocumentRepository(db)
        self.bucket = bucket or settings.obra_docs_bucket

    def upload(
        self,
        obra_id: uuid.UUID | str,
        payload: FilePayload,
        *,
        doc_type: ObraDocType | str,
        version: int | str,
        title: Optional[str] = None,
        uploaded_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> UploadResult:
        doc_type = doc_type if isinstance(doc_type, ObraDocType) else parse_obra_doc_type(doc_type)
        version_number = parse_version(version)
        clean_title = resolve_title(title, payload.file_name)
        validate_obra_upload(payload, self.max_upload_bytes)
        obra = self.repo.require_obra(obra_id)

        object_path = build_obra_object_path(obra.id, doc_type.value, payload.file_name)
        versioned = is_versioned(doc_type)

        try:
            demoted = demote_current(self.repo.db, obra.id, doc_type)
        except RecordStoreError:
            self.repo.rollback()
            record_upload_failure(self.owner_type, "demote")
            raise

        try:
            self.store.put(self.bucket, object_path, payload.content, payload.mime_type)
        except StorageError:
            self.repo.rollback()
            record_upload_failure(self.owner_type, "storage")
            raise

        document = ObraDocument(
            obra_id=obra.id,
            doc_type=doc_type.value,
            title=clean_title,
            bucket=self.bucket,
            object_path=object_path,
            file_name=payload.file_name,
            mime_type=payload.mime_type or None,
            size_bytes=payload.size,
            uploaded_by=uploaded_by,
            version=version_number,
            is_current=versioned,
            ai_status=AiStatusEnum.PENDING.value,
            notes=(notes or "").strip() or None,
        )
        try:
            self.repo.insert(document)
            for demoted_id in demoted:
                self.repo.add_event(
                    obra.id,
                    "document_superseded",
                    {"document_id": str(demoted_id), "superseded_by": str(document.id)},
                )
            self.repo.add_event(
                obra.id,
                "document_uploaded",
                {"document_id": str(document.id), "doc_type": doc_type.value, "version": version_number, "path": object_path},
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            record_upload_failure(self.owner_type, "database")
            self._compensate(self.bucket, object_path)
            raise

        record_upload(self.owner_type, doc_type.value, payload.size)
        logger.info(
            "obra_document_uploaded obra_id=%s document_id=%s doc_type=%s version=%s is_current=%s",
            obra.id,
            document.id,
            doc_type.value,
            version_number,
            versioned,
        )
        return UploadResult(document=document, signed_url=self.broker.try_sign(self.bucket, object_path))

    def delete(self, document_id: uuid.UUID | str) -> ObraDocument:
        """Blob first, then row. A storage failure leaves the row untouched."""
        document = self.repo.get(document_id)
        if document is None:
            raise DocumentNotFoundError("Document not found")

        self.store.delete(document.bucket, document.object_path)
        try:
            self.repo.delete(document)
            self.repo.add_event(
                document.obra_id,
                "document_deleted",
                {"document_id": str(document.id), "doc_type": document.doc_type, "path": document.object_path},
            )
            self.repo.commit()
        except RecordStoreError:
            self.repo.rollback()
            logger.error(
                "obra_document_row_delete_failed document_id=%s path=%s", document.id, document.object_path, exc_info=True
            )
            raise

        record_delete(self.owner_type)
        logger.info("obra_document_deleted obra_id=%s document_id=%s", document.obra_id, document.id)
        return document


class EmployeeDocumentUploader(_Uploader):
    """Single-slot employee documents: a new upload replaces the row and discards the old blob."""

    owner_type = "employee"

    def __init__(
        self,
        db: Session,
        store: ObjectStore,
        broker: SignedUrlBroker,
        bucket: Optional[str] = None,
        max_upload_bytes: Optional[int] = None,
    ) -> None:
        super().__init__(store, broker, max_upload_bytes)
        self.repo = EmployeeDocumentRepository(db)
        self.bucket = bucket or settings.employee_docs_bucket

    def upload(self, employee_id: uuid.UUID | str, doc_type: EmployeeDocType | str, payload: FilePayload) -> UploadResult:
        doc_type = doc_type if isinstance(doc_type, EmployeeDocType) else parse_employee_doc_type(doc_type)
        validate_employee_upload(payload, doc_type, self.max_upload_bytes)
        employee = self.repo.require_employee(employee_id)

        previous = self.repo.get_slot(employee.id, doc_type)
        previous_location = (previous.storage_bucket, previous.storage_path) if previous else None
        object_path = build_employee_object_path(employee.id, doc_type.value, payload.file_name)

        try:
            self.store.put(self.bucket, object_path, payload.content, payload.mime_type)
        except StorageError:
            record_upload_failure(self.owner_type, "storage")
            raise

        document = EmployeeDocument(
            employee_id=employee.id,
            doc_type=doc_type.value,
            storage_bucket=self.bucket,
            storage_path=object_path,
            file_name=payload.file_name or None,
            mime_type=payload.mime_type or None,
            file_size=payload.size,
        )
        try:
            if previous is not None:
                # Flushed on its own so the (employee_id, doc_type) slot is free for the insert.
                self.repo.delete(previous)
            self.repo.insert(document)
            self.repo.add_event(
                employee.id,
                "document_replaced" if previous is not None else "document_uploaded",
                {"document_id": str(document.id), "doc_type": doc_type.value, "path": object_path},
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            record_upload_failure(self.owner_type, "database")
            self._compensate(self.bucket, object_path)
            raise

        warnings: list[str] = []
        if previous_location is not None and previous_location[1] != object_path:
            try:
                self.store.delete(*previous_location)
            except StorageError:
                logger.warning(
                    "previous_blob_not_removed employee_id=%s bucket=%s path=%s",
                    employee.id,
                    *previous_location,
                    exc_info=True,
                )
                warnings.append("The previous file could not be removed from storage.")

        if doc_type is EmployeeDocType.PROFILE_PHOTO and not self._sync_photo_pointer(employee.id, object_path):
            warnings.append("The employee photo reference could not be updated.")

        record_upload(self.owner_type, doc_type.value, payload.size)
        logger.info(
            "employee_document_uploaded employee_id=%s document_id=%s doc_type=%s replaced=%s",
            employee.id,
            document.id,
            doc_type.value,
            previous_location is not None,
        )
        return UploadResult(
            document=document,
            signed_url=self.broker.try_sign(self.bucket, object_path),
            warnings=warnings,
        )

    def delete(self, employee_id: uuid.UUID | str, doc_type: EmployeeDocType | str) -> Optional[EmployeeDocument]:
        """Remove the slot's blob and row. Returns ``None`` when the slot was already empty."""
        doc_type = doc_type if isinstance(doc_type, EmployeeDocType) else parse_employee_doc_type(doc_type)
        employee = self.repo.require_employee(employee_id)
        document = self.repo.get_slot(employee.id, doc_type)
        if document is None:
            return None

        self.store.delete(document.storage_bucket, document.storage_path)
        try:
            self.repo.delete(document)
            self.repo.add_event(
                employee.id,
                "document_deleted",
                {"document_id": str(document.id), "doc_type": doc_type.value, "path": document.storage_path},
            )
            self.repo.commit()
        except RecordStoreError:
            self.repo.rollback()
            raise

        if doc_type is EmployeeDocType.PROFILE_PHOTO:
            self._sync_photo_pointer(employee.id, None)

        record_delete(self.owner_type)
        logger.info("employee_document_deleted employee_id=%s doc_type=%s", employee.id, doc_type.value)
        return document

    def resolve_photo_path(self, employee_id: uuid.UUID | str) -> Optional[str]:
        """The photo pointer is a projection of the current profile_photo row; stale values are repaired here."""
        employee = self.repo.require_employee(employee_id)
        current = self.repo.get_slot(employee.id, EmployeeDocType.PROFILE_PHOTO)
        expected = current.storage_path if current else None
        if employee.photo_url != expected:
            logger.info("photo_pointer_stale employee_id=%s stored=%s expected=%s", employee.id, employee.photo_url, expected)
            self._sync_photo_pointer(employee.id, expected)
        return expected

    def _sync_photo_pointer(self, employee_id: uuid.UUID, path: Optional[str]) -> bool:
        """Best-effort update of ``employees.photo_url``; the document row stays authoritative."""
        try:
            employee = self.repo.require_employee(employee_id)
            self.repo.set_photo_pointer(employee, path)
            self.repo.commit()
        except RecordStoreError:
            self.repo.rollback()
            logger.error("photo_pointer_update_failed employee_id=%s path=%s", employee_id, path, exc_info=True)
            return False
        return True
