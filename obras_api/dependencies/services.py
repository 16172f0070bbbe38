from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from ..services.signed_urls import SignedUrlBroker
from ..services.storage import ObjectStore, get_object_store
from ..services.uploads import EmployeeDocumentUploader, ObraDocumentUploader
from .db import get_db


def get_signed_url_broker(store: ObjectStore = Depends(get_object_store)) -> SignedUrlBroker:
    return SignedUrlBroker(store)


def get_obra_uploader(
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    broker: SignedUrlBroker = Depends(get_signed_url_broker),
) -> ObraDocumentUploader:
    return ObraDocumentUploader(db, store, broker)


def get_employee_uploader(
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    broker: SignedUrlBroker = Depends(get_signed_url_broker),
) -> EmployeeDocumentUploader:
    return EmployeeDocumentUploader(db, store, broker)
