from .employee_documents import REQUIRED_EMPLOYEE_DOC_TYPES, EmployeeDocType, EmployeeDocument
from .employees import Employee
from .events import Event
from .obra_documents import AiStatusEnum, ObraDocType, ObraDocument
from .obras import Obra

__all__ = [
    "AiStatusEnum",
    "Employee",
    "EmployeeDocType",
    "EmployeeDocument",
    "Event",
    "Obra",
    "ObraDocType",
    "ObraDocument",
    "REQUIRED_EMPLOYEE_DOC_TYPES",
]
