from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Employee, EmployeeDocType, EmployeeDocument, Event, Obra, ObraDocument
from .errors import OwnerNotFoundError, RecordStoreError


def _as_uuid(value: uuid.UUID | str, label: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise OwnerNotFoundError(f"Invalid {label} id") from exc


class _Repository:
    owner_type: str

    def __init__(self, db: Session) -> None:
        self.db = db

    def _flush(self, action: str) -> None:
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            raise RecordStoreError(f"Failed to {action}: {exc}") from exc

    def insert(self, row: Any) -> Any:
        self.db.add(row)
        self._flush(f"insert {row.__tablename__} row")
        return row

    def delete(self, row: Any) -> None:
        self.db.delete(row)
        self._flush(f"delete {row.__tablename__} row")

    def add_event(self, owner_id: uuid.UUID, event_type: str, data: dict[str, Any]) -> None:
        self.db.add(Event(owner_type=self.owner_type, owner_id=owner_id, type=event_type, data=data))

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RecordStoreError(f"Failed to commit: {exc}") from exc

    def rollback(self) -> None:
        self.db.rollback()


class ObraDocumentRepository(_Repository):
    owner_type = "obra"

    def get_obra(self, obra_id: uuid.UUID | str) -> Optional[Obra]:
        return self.db.get(Obra, _as_uuid(obra_id, "obra"))

    def require_obra(self, obra_id: uuid.UUID | str) -> Obra:
        obra = self.get_obra(obra_id)
        if obra is None:
            raise OwnerNotFoundError("Obra not found")
        return obra

    def get(self, document_id: uuid.UUID | str) -> Optional[ObraDocument]:
        try:
            doc_uuid = uuid.UUID(str(document_id))
        except ValueError:
            return None
        return self.db.get(ObraDocument, doc_uuid)

    def list_for_obra(self, obra_id: uuid.UUID) -> list[ObraDocument]:
        return (
            self.db.query(ObraDocument)
            .filter(ObraDocument.obra_id == obra_id)
            .order_by(ObraDocument.uploaded_at.desc(), ObraDocument.version.desc())
            .all()
        )

    def list_all(self) -> list[ObraDocument]:
        return self.db.query(ObraDocument).all()


class EmployeeDocumentRepository(_Repository):
    owner_type = "employee"

    def get_employee(self, employee_id: uuid.UUID | str) -> Optional[Employee]:
        return self.db.get(Employee, _as_uuid(employee_id, "employee"))

    def require_employee(self, employee_id: uuid.UUID | str) -> Employee:
        employee = self.get_employee(employee_id)
        if employee is None:
            raise OwnerNotFoundError("Employee not found")
        return employee

    def list_for_employee(self, employee_id: uuid.UUID) -> list[EmployeeDocument]:
        return (
            self.db.query(EmployeeDocument)
            .filter(EmployeeDocument.employee_id == employee_id)
            .order_by(EmployeeDocument.doc_type)
            .all()
        )

    def get_slot(self, employee_id: uuid.UUID, doc_type: EmployeeDocType) -> Optional[EmployeeDocument]:
        return (
            self.db.query(EmployeeDocument)
            .filter(EmployeeDocument.employee_id == employee_id, EmployeeDocument.doc_type == doc_type.value)
            .one_or_none()
        )

    def list_all(self) -> list[EmployeeDocument]:
        return self.db.query(EmployeeDocument).all()

    def set_photo_pointer(self, employee: Employee, path: Optional[str]) -> None:
        employee.photo_url = path
        self._flush("update employee photo pointer")
