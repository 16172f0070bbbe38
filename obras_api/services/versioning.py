"""Current-version rules for stored documents.

Three policies exist side by side:

* ``SINGLE_SLOT``: employee documents. One row per (employee, doc_type); a new
  upload replaces the row and the previous blob is discarded.
* ``VERSIONED``: obra contracts and quotes. Every upload is kept; exactly one row
  per (obra, doc_type) is current.
* ``ATTACHMENT``: obra "other" files. Unlimited rows, never current.
"""

from __future__ import annotations

import enum
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import ObraDocType, ObraDocument
from .errors import RecordStoreError

logger = logging.getLogger(__name__)


class SlotPolicy(str, enum.Enum):
    SINGLE_SLOT = "single_slot"
    VERSIONED = "versioned"
    ATTACHMENT = "attachment"


VERSIONED_OBRA_TYPES = frozenset({ObraDocType.CONTRACT, ObraDocType.QUOTE})


def obra_policy(doc_type: ObraDocType) -> SlotPolicy:
    return SlotPolicy.VERSIONED if doc_type in VERSIONED_OBRA_TYPES else SlotPolicy.ATTACHMENT


def is_versioned(doc_type: ObraDocType) -> bool:
    return obra_policy(doc_type) is SlotPolicy.VERSIONED


def demote_current(db: Session, obra_id: uuid.UUID, doc_type: ObraDocType) -> list[uuid.UUID]:
    """Flip the current row for (obra, doc_type) to not-current inside the open transaction.

    Returns the ids that were demoted. Attachments are exempt and return nothing.
    The caller inserts the new current row in the same transaction; the partial
    unique index on ``obra_documents`` rejects a concurrent second current row.
    """
    if not is_versioned(doc_type):
        return []

    query = db.query(ObraDocument).filter(
        ObraDocument.obra_id == obra_id,
        ObraDocument.doc_type == doc_type.value,
        ObraDocument.is_current.is_(True),
    )
    try:
        demoted = [row_id for (row_id,) in query.with_entities(ObraDocument.id).all()]
        if demoted:
            query.update({"is_current": False}, synchronize_session="fetch")
    except SQLAlchemyError as exc:
        raise RecordStoreError(f"Failed to demote current {doc_type.value}: {exc}") from exc

    if demoted:
        logger.info("document_demoted obra_id=%s doc_type=%s ids=%s", obra_id, doc_type.value, demoted)
    return demoted
