from __future__ import annotations

import os
import pathlib
import sys
import tempfile
from typing import Iterator

import boto3
import pytest
from fastapi.testclient import TestClient

ROOT_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

_TEST_DB_DIR = tempfile.mkdtemp(prefix="obras-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB_DIR}/obras.db")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.pop("S3_ENDPOINT_URL", None)

from obras_api.config import settings  # noqa: E402
from obras_api.db.session import SessionLocal, engine  # noqa: E402
from obras_api.main import app  # noqa: E402
from obras_api.models import Employee, Obra  # noqa: E402
from obras_api.models.base import Base  # noqa: E402

ADMIN_HEADERS = {"x-user-id": "admin-user", "x-user-role": "admin"}
MEMBER_HEADERS = {"x-user-id": "member-user", "x-user-role": "employee"}


@pytest.fixture(scope="session", autouse=True)
def database_schema() -> Iterator[None]:
    """Create the schema once for the whole run."""
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="session")
def client() -> Iterator[TestClient]:
    """Provide a FastAPI TestClient instance."""
    with TestClient(app) as _client:
        yield _client


@pytest.fixture()
def admin_client(client: TestClient) -> Iterator[TestClient]:
    """Client carrying the identity headers of an admin user."""
    client.headers.update(ADMIN_HEADERS)
    try:
        yield client
    finally:
        for header in ADMIN_HEADERS:
            client.headers.pop(header, None)


@pytest.fixture()
def member_client(client: TestClient) -> Iterator[TestClient]:
    client.headers.update(MEMBER_HEADERS)
    try:
        yield client
    finally:
        for header in MEMBER_HEADERS:
            client.headers.pop(header, None)


@pytest.fixture()
def mock_s3():
    """Mocked S3 with both document buckets created."""
    from moto import mock_aws

    with mock_aws():
        s3 = boto3.client("s3", region_name=settings.aws.region)
        for bucket in (settings.employee_docs_bucket, settings.obra_docs_bucket):
            s3.create_bucket(Bucket=bucket)
        yield s3


@pytest.fixture()
def obra() -> Obra:
    with SessionLocal() as session:
        row = Obra(name="Torre Norte")
        session.add(row)
        session.commit()
        return row


@pytest.fixture()
def employee() -> Employee:
    with SessionLocal() as session:
        row = Employee(full_name="María López")
        session.add(row)
        session.commit()
        return row


@pytest.fixture(autouse=True)
def cleanup_database() -> Iterator[None]:
    """Empty every table after each test to keep isolation."""
    yield
    with SessionLocal() as session:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()


@pytest.fixture()
def bucket_keys(mock_s3):
    """Return a helper listing the keys currently stored in a bucket."""

    def _keys(bucket: str) -> list[str]:
        response = mock_s3.list_objects_v2(Bucket=bucket)
        return sorted(item["Key"] for item in response.get("Contents", []))

    return _keys
