from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..models import REQUIRED_EMPLOYEE_DOC_TYPES, EmployeeDocument, ObraDocType, ObraDocument

DOC_STATUSES = ("missing", "uploaded", "processing", "approved", "rejected")

_AI_TO_DOC_STATUS = {
    "processing": "processing",
    "done": "approved",
    "error": "rejected",
}

OBRA_DOC_TYPE_LABELS = {
    ObraDocType.CONTRACT.value: "Contrato",
    ObraDocType.QUOTE.value: "Cotización",
    ObraDocType.OTHER.value: "Anexo",
}


def doc_status(ai_status: Optional[str]) -> str:
    """Badge shown for a stored document; pending and disabled both read as "uploaded"."""
    return _AI_TO_DOC_STATUS.get(ai_status or "", "uploaded")


def doc_type_label(doc_type: str) -> str:
    return OBRA_DOC_TYPE_LABELS.get(doc_type, OBRA_DOC_TYPE_LABELS[ObraDocType.OTHER.value])


def filter_obra_documents(
    documents: Iterable[ObraDocument],
    q: Optional[str] = None,
    doc_type: Optional[str] = None,
    status: Optional[str] = None,
) -> list[ObraDocument]:
    needle = (q or "").strip().lower()
    matches = []
    for document in documents:
        if needle:
            haystack = (document.title or "", document.file_name or "", doc_type_label(document.doc_type))
            if not any(needle in value.lower() for value in haystack):
                continue
        if doc_type and doc_type != "all" and document.doc_type != doc_type:
            continue
        if status and status != "all" and doc_status(document.ai_status) != status:
            continue
        matches.append(document)
    return matches


def summarize_obra_documents(documents: Sequence[ObraDocument]) -> dict[str, str]:
    """Status per versioned type: the current row's badge, or "missing"."""
    summary: dict[str, str] = {}
    for doc_type in (ObraDocType.CONTRACT, ObraDocType.QUOTE):
        current = next(
            (doc for doc in documents if doc.doc_type == doc_type.value and doc.is_current),
            None,
        )
        summary[doc_type.value] = doc_status(current.ai_status) if current else "missing"
    return summary


def missing_employee_doc_types(documents: Iterable[EmployeeDocument]) -> list[str]:
    present = {document.doc_type for document in documents}
    return [doc_type.value for doc_type in REQUIRED_EMPLOYEE_DOC_TYPES if doc_type.value not in present]
