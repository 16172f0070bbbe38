from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from .base import Base, JSONType, utcnow


class Event(Base):
    __tablename__ = "events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_type = Column(String, nullable=False)  # "employee" | "obra"
    owner_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    type = Column(String, nullable=False)  # "document_uploaded", "document_superseded", "document_replaced", "document_deleted"
    data = Column(JSONType, nullable=False, default=dict)
    at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
