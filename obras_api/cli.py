from __future__ import annotations

import typer

from .db.session import SessionLocal
from .models import Employee, Obra
from .services.document_store import EmployeeDocumentRepository, ObraDocumentRepository
from .services.errors import StorageError
from .services.signed_urls import SignedUrlBroker
from .services.storage import ObjectStore
from .services.uploads import EmployeeDocumentUploader

app = typer.Typer(help="Obras documents administrative CLI")


@app.command()
def create_employee(full_name: str = typer.Argument(..., help="Employee full name")) -> None:
    """Register an employee so documents can be attached to it."""
    with SessionLocal() as db:
        employee = Employee(full_name=full_name.strip())
        db.add(employee)
        db.commit()
        typer.echo(f"Created employee {employee.full_name} ({employee.id})")


@app.command()
def create_obra(name: str = typer.Argument(..., help="Project name")) -> None:
    """Register an obra (construction project)."""
    with SessionLocal() as db:
        obra = Obra(name=name.strip())
        db.add(obra)
        db.commit()
        typer.echo(f"Created obra {obra.name} ({obra.id})")


@app.command()
def check_orphans() -> None:
    """List document rows whose stored object no longer exists."""
    store = ObjectStore()
    missing = 0
    with SessionLocal() as db:
        rows = [
            ("obra", doc.id, doc.bucket, doc.object_path) for doc in ObraDocumentRepository(db).list_all()
        ] + [
            ("employee", doc.id, doc.storage_bucket, doc.storage_path)
            for doc in EmployeeDocumentRepository(db).list_all()
        ]
        for owner_type, doc_id, bucket, path in rows:
            try:
                exists = store.exists(bucket, path)
            except StorageError as exc:
                typer.echo(f"[error] {owner_type} {doc_id}: {exc}", err=True)
                continue
            if not exists:
                missing += 1
                typer.echo(f"[missing] {owner_type} {doc_id} s3://{bucket}/{path}")

    typer.echo(f"Checked {len(rows)} documents, {missing} without a stored object")
    if missing:
        raise typer.Exit(code=1)


@app.command()
def repair_photo_pointers() -> None:
    """Recompute every employee's photo pointer from the current profile_photo document."""
    store = ObjectStore()
    with SessionLocal() as db:
        uploader = EmployeeDocumentUploader(db, store, SignedUrlBroker(store))
        employee_ids = [employee.id for employee in db.query(Employee).all()]
        changed = 0
        for employee_id in employee_ids:
            before = uploader.repo.require_employee(employee_id).photo_url
            after = uploader.resolve_photo_path(employee_id)
            if before != after:
                changed += 1
                typer.echo(f"{employee_id}: {before!r} -> {after!r}")
        typer.echo(f"Repaired {changed} of {len(employee_ids)} employees")


if __name__ == "__main__":
    app()
