from __future__ import annotations

import io
import uuid

import pytest

from obras_api.config import settings
from obras_api.db.session import SessionLocal
from obras_api.models import Event, ObraDocument
from obras_api.services.errors import StorageError
from obras_api.services.storage import ObjectStore

PDF_BYTES = b"%PDF-1.7\n" + b"A" * 512 + b"\n%%EOF"


def _upload(client, obra_id, doc_type="contract", version="1", title="Contrato", name="contrato.pdf", **extra):
    data = {"doc_type": doc_type, "version": version}
    if title is not None:
        data["title"] = title
    data.update(extra)
    return client.post(
        f"/obras/{obra_id}/documents",
        data=data,
        files={"file": (name, io.BytesIO(PDF_BYTES), "application/pdf")},
    )


@pytest.mark.integration
def test_versioned_replace_keeps_history(admin_client, mock_s3, bucket_keys, obra):
    first = _upload(admin_client, obra.id, version="1", name="contrato A.pdf")
    assert first.status_code == 200
    first_doc = first.json()["document"]
    assert first_doc["is_current"] is True
    assert first_doc["file_name"] == "contrato A.pdf"
    assert first_doc["uploaded_by"] == "admin-user"
    assert first_doc["ai_status"] == "pending"
    assert first_doc["status"] == "uploaded"
    assert first_doc["object_path"].startswith(f"obras/{obra.id}/contracts/")
    assert first_doc["object_path"].endswith("_contrato_A.pdf")
    assert first.json()["signed_url"]["url"]

    second = _upload(admin_client, obra.id, version="2", name="contrato B.pdf")
    assert second.status_code == 200
    second_doc = second.json()["document"]

    with SessionLocal() as session:
        rows = (
            session.query(ObraDocument)
            .filter(ObraDocument.obra_id == obra.id, ObraDocument.doc_type == "contract")
            .all()
        )
        by_version = {row.version: row for row in rows}
        assert len(rows) == 2
        assert by_version[1].is_current is False
        assert by_version[2].is_current is True
        assert by_version[2].file_name == "contrato B.pdf"

        event_types = sorted(event.type for event in session.query(Event).filter(Event.owner_id == obra.id))
        assert event_types == ["document_superseded", "document_uploaded", "document_uploaded"]

    assert bucket_keys(settings.obra_docs_bucket) == sorted([first_doc["object_path"], second_doc["object_path"]])


@pytest.mark.integration
def test_other_attachments_are_never_current(admin_client, mock_s3, obra):
    for idx in range(3):
        response = _upload(admin_client, obra.id, doc_type="other", title=f"Anexo {idx}", name=f"anexo-{idx}.pdf")
        assert response.status_code == 200
        assert response.json()["document"]["is_current"] is False
        assert "/other/" in response.json()["document"]["object_path"]

    listing = admin_client.get(f"/obras/{obra.id}/documents", params={"doc_type": "other"})
    assert listing.status_code == 200
    assert len(listing.json()["documents"]) == 3


@pytest.mark.integration
def test_oversized_upload_is_rejected_without_side_effects(admin_client, mock_s3, bucket_keys, obra, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_bytes", 256)

    before = admin_client.get(f"/obras/{obra.id}/documents").json()["documents"]
    response = _upload(admin_client, obra.id)

    assert response.status_code == 400
    assert "maximum size" in response.json()["detail"]["error"]
    assert admin_client.get(f"/obras/{obra.id}/documents").json()["documents"] == before
    assert bucket_keys(settings.obra_docs_bucket) == []


@pytest.mark.integration
@pytest.mark.parametrize(
    ("overrides", "detail"),
    [
        ({"version": "0"}, "Version must be a number greater than 0."),
        ({"version": "abc"}, "Version must be a number greater than 0."),
        ({"version": "1e20"}, "Version must be a number greater than 0."),
        ({"version": "2147483648"}, "Version must be a number greater than 0."),
        ({"title": "   "}, "Title is required."),
        ({"doc_type": "invoice"}, "Invalid doc_type."),
    ],
)
def test_invalid_form_fields_are_rejected(admin_client, mock_s3, bucket_keys, obra, overrides, detail):
    response = _upload(admin_client, obra.id, **overrides)
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == detail
    assert bucket_keys(settings.obra_docs_bucket) == []


@pytest.mark.integration
def test_missing_doc_type_uses_error_envelope(admin_client, mock_s3, bucket_keys, obra):
    response = admin_client.post(
        f"/obras/{obra.id}/documents",
        data={"version": "1", "title": "Contrato"},
        files={"file": ("contrato.pdf", io.BytesIO(PDF_BYTES), "application/pdf")},
    )
    assert response.status_code == 400
    assert response.json() == {"detail": {"error": "Invalid doc_type."}}
    assert bucket_keys(settings.obra_docs_bucket) == []


@pytest.mark.integration
def test_disallowed_file_type_is_rejected(admin_client, mock_s3, obra):
    response = admin_client.post(
        f"/obras/{obra.id}/documents",
        data={"doc_type": "quote", "version": "1", "title": "Script"},
        files={"file": ("run.sh", io.BytesIO(b"#!/bin/sh\necho hi"), "application/x-sh")},
    )
    assert response.status_code == 400
    assert response.json()["detail"]["error"].startswith("File type not allowed")


@pytest.mark.integration
def test_title_defaults_to_file_stem(admin_client, mock_s3, obra):
    response = _upload(admin_client, obra.id, doc_type="quote", title=None, name="cotizacion-final.pdf")
    assert response.status_code == 200
    assert response.json()["document"]["title"] == "cotizacion-final"


@pytest.mark.integration
def test_upload_for_unknown_obra_returns_404(admin_client, mock_s3, bucket_keys):
    response = _upload(admin_client, uuid.uuid4())
    assert response.status_code == 404
    assert bucket_keys(settings.obra_docs_bucket) == []


@pytest.mark.integration
def test_listing_filters_and_summary(admin_client, mock_s3, obra):
    _upload(admin_client, obra.id, doc_type="contract", title="Contrato marco")
    _upload(admin_client, obra.id, doc_type="other", title="Planos", name="planos.pdf")

    with SessionLocal() as session:
        contract = session.query(ObraDocument).filter(ObraDocument.doc_type == "contract").one()
        contract.ai_status = "done"
        session.commit()

    searched = admin_client.get(f"/obras/{obra.id}/documents", params={"q": "planos"}).json()
    assert [doc["title"] for doc in searched["documents"]] == ["Planos"]
    assert searched["total"] == 2

    by_label = admin_client.get(f"/obras/{obra.id}/documents", params={"q": "contrato"}).json()
    assert [doc["doc_type"] for doc in by_label["documents"]] == ["contract"]

    approved = admin_client.get(f"/obras/{obra.id}/documents", params={"status": "approved"}).json()
    assert [doc["title"] for doc in approved["documents"]] == ["Contrato marco"]

    summary = admin_client.get(f"/obras/{obra.id}/documents/summary")
    assert summary.json() == {"contract": "approved", "quote": "missing"}

    bad_status = admin_client.get(f"/obras/{obra.id}/documents", params={"status": "lost"})
    assert bad_status.status_code == 400


@pytest.mark.integration
def test_signed_url_endpoint(admin_client, mock_s3, obra):
    document = _upload(admin_client, obra.id).json()["document"]

    response = admin_client.get(f"/obra-documents/{document['id']}/signed-url")
    assert response.status_code == 200
    payload = response.json()
    assert "X-Amz-Expires=180" in payload["signedUrl"]
    assert payload["expiresAt"]

    capped = admin_client.get(f"/obra-documents/{document['id']}/signed-url", params={"expiresIn": 999999})
    assert f"X-Amz-Expires={settings.signed_url_max_ttl_seconds}" in capped.json()["signedUrl"]

    download = admin_client.get(f"/obra-documents/{document['id']}/signed-url", params={"download": "true"})
    assert "response-content-disposition" in download.json()["signedUrl"]


@pytest.mark.integration
def test_signed_url_for_missing_blob_returns_404_and_keeps_row(admin_client, mock_s3, obra):
    document = _upload(admin_client, obra.id).json()["document"]
    mock_s3.delete_object(Bucket=document["bucket"], Key=document["object_path"])

    response = admin_client.get(f"/obra-documents/{document['id']}/signed-url")
    assert response.status_code == 404

    with SessionLocal() as session:
        assert session.get(ObraDocument, uuid.UUID(document["id"])) is not None


@pytest.mark.integration
def test_delete_removes_blob_and_row(admin_client, mock_s3, bucket_keys, obra):
    document = _upload(admin_client, obra.id).json()["document"]

    response = admin_client.delete(f"/obra-documents/{document['id']}")
    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert bucket_keys(settings.obra_docs_bucket) == []
    assert admin_client.get(f"/obras/{obra.id}/documents").json()["documents"] == []

    again = admin_client.delete(f"/obra-documents/{document['id']}")
    assert again.status_code == 404


@pytest.mark.integration
def test_delete_keeps_row_when_storage_delete_fails(admin_client, mock_s3, bucket_keys, obra, monkeypatch):
    document = _upload(admin_client, obra.id).json()["document"]

    def _fail(self, bucket, key):
        raise StorageError("Failed to delete S3 object: simulated outage")

    monkeypatch.setattr(ObjectStore, "delete", _fail)

    response = admin_client.delete(f"/obra-documents/{document['id']}")
    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "Storage operation failed"

    listing = admin_client.get(f"/obras/{obra.id}/documents").json()["documents"]
    assert [doc["id"] for doc in listing] == [document["id"]]
    assert bucket_keys(settings.obra_docs_bucket) == [document["object_path"]]
