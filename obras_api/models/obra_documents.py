from __future__ import annotations

import enum
import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.sql import func

from .base import Base, utcnow


class ObraDocType(str, enum.Enum):
    CONTRACT = "contract"
    QUOTE = "quote"
    OTHER = "other"


class AiStatusEnum(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"
    DISABLED = "disabled"


class ObraDocument(Base):
    __tablename__ = "obra_documents"
    __table_args__ = (
        # At most one current row per (obra, doc_type); "other" rows are never current.
        Index(
            "uq_obra_documents_current",
            "obra_id",
            "doc_type",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
        CheckConstraint("version > 0", name="ck_obra_documents_version_positive"),
        CheckConstraint("doc_type <> 'other' OR NOT is_current", name="ck_obra_documents_other_not_current"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    obra_id = Column(Uuid(as_uuid=True), ForeignKey("obras.id", ondelete="CASCADE"), nullable=False, index=True)
    doc_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    bucket = Column(String, nullable=False)
    object_path = Column(String, nullable=False, unique=True)
    file_name = Column(String, nullable=True)
    mime_type = Column(String, nullable=True)
    size_bytes = Column(Integer, nullable=True)
    uploaded_by = Column(String, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    is_current = Column(Boolean, nullable=False, default=False)
    ai_status = Column(String, nullable=False, default=AiStatusEnum.PENDING.value, server_default="pending")
    notes = Column(Text, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
