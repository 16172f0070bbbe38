from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from .base import Base, utcnow


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String, nullable=False)
    # Object path of the current profile photo; a projection of employee_documents.
    photo_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
