from __future__ import annotations

import pytest
from typer.testing import CliRunner

from obras_api.cli import app
from obras_api.config import settings
from obras_api.db.session import SessionLocal
from obras_api.models import Employee, Obra
from obras_api.services.signed_urls import SignedUrlBroker
from obras_api.services.storage import ObjectStore
from obras_api.services.uploads import EmployeeDocumentUploader
from obras_api.services.validation import FilePayload

runner = CliRunner()

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_create_commands():
    assert runner.invoke(app, ["create-obra", "Torre Sur"]).exit_code == 0
    assert runner.invoke(app, ["create-employee", "Juan Pérez"]).exit_code == 0

    with SessionLocal() as session:
        assert [obra.name for obra in session.query(Obra).all()] == ["Torre Sur"]
        assert [row.full_name for row in session.query(Employee).all()] == ["Juan Pérez"]


@pytest.mark.integration
def test_check_orphans_and_repair_photo_pointers(mock_s3, employee):
    store = ObjectStore()
    with SessionLocal() as session:
        uploader = EmployeeDocumentUploader(session, store, SignedUrlBroker(store))
        result = uploader.upload(
            employee.id,
            "profile_photo",
            FilePayload(content=PNG_BYTES, file_name="me.png", mime_type="image/png", size=len(PNG_BYTES)),
        )
        path = result.document.storage_path
        session.get(Employee, employee.id).photo_url = None
        session.commit()

    clean = runner.invoke(app, ["check-orphans"])
    assert clean.exit_code == 0
    assert "Checked 1 documents, 0 without a stored object" in clean.output

    repaired = runner.invoke(app, ["repair-photo-pointers"])
    assert repaired.exit_code == 0
    assert "Repaired 1 of 1 employees" in repaired.output
    with SessionLocal() as session:
        assert session.get(Employee, employee.id).photo_url == path

    mock_s3.delete_object(Bucket=settings.employee_docs_bucket, Key=path)
    missing = runner.invoke(app, ["check-orphans"])
    assert missing.exit_code == 1
    assert "[missing] employee" in missing.output
