from __future__ import annotations

import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.sql import func

from .base import Base, utcnow


class EmployeeDocType(str, enum.Enum):
    TAX_CERTIFICATE = "tax_certificate"
    BIRTH_CERTIFICATE = "birth_certificate"
    IMSS = "imss"
    CURP = "curp"
    INE = "ine"
    ADDRESS_PROOF = "address_proof"
    PROFILE_PHOTO = "profile_photo"


# Checklist shown on the employee profile; the photo is optional.
REQUIRED_EMPLOYEE_DOC_TYPES = tuple(
    doc_type for doc_type in EmployeeDocType if doc_type is not EmployeeDocType.PROFILE_PHOTO
)


class EmployeeDocument(Base):
    """One slot per (employee, doc_type); a new upload replaces the slot."""

    __tablename__ = "employee_documents"
    __table_args__ = (UniqueConstraint("employee_id", "doc_type", name="uq_employee_documents_employee_doc_type"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id = Column(
        Uuid(as_uuid=True), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    doc_type = Column(String, nullable=False)
    storage_bucket = Column(String, nullable=False)
    storage_path = Column(String, nullable=False, unique=True)
    file_name = Column(String, nullable=True)
    mime_type = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )
