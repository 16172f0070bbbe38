from __future__ import annotations

from prometheus_client import Counter, Histogram

DOCUMENT_UPLOADS_COUNTER = Counter(
    "obras_document_uploads_total",
    "Documents uploaded per owner kind and doc type",
    ["owner_type", "doc_type"],
)

DOCUMENT_UPLOAD_FAILURES_COUNTER = Counter(
    "obras_document_upload_failures_total",
    "Failed uploads per owner kind and failing stage",
    ["owner_type", "stage"],
)

DOCUMENT_DELETES_COUNTER = Counter(
    "obras_document_deletes_total",
    "Documents deleted per owner kind",
    ["owner_type"],
)

COMPENSATING_DELETES_COUNTER = Counter(
    "obras_compensating_deletes_total",
    "Blobs removed after a failed database write, by outcome",
    ["owner_type", "outcome"],
)

SIGNED_URLS_COUNTER = Counter(
    "obras_signed_urls_total",
    "Signed URLs issued per bucket",
    ["bucket"],
)

UPLOAD_SIZE_HISTOGRAM = Histogram(
    "obras_document_upload_bytes",
    "Size of accepted uploads",
    ["owner_type"],
    buckets=(64 * 1024, 512 * 1024, 1024 * 1024, 5 * 1024 * 1024, 10 * 1024 * 1024, 25 * 1024 * 1024),
)


def record_upload(owner_type: str, doc_type: str, size: int) -> None:
    DOCUMENT_UPLOADS_COUNTER.labels(owner_type=owner_type, doc_type=doc_type).inc()
    UPLOAD_SIZE_HISTOGRAM.labels(owner_type=owner_type).observe(size)


def record_upload_failure(owner_type: str, stage: str) -> None:
    DOCUMENT_UPLOAD_FAILURES_COUNTER.labels(owner_type=owner_type, stage=stage).inc()


def record_delete(owner_type: str) -> None:
    DOCUMENT_DELETES_COUNTER.labels(owner_type=owner_type).inc()


def record_compensation(owner_type: str, succeeded: bool) -> None:
    COMPENSATING_DELETES_COUNTER.labels(owner_type=owner_type, outcome="ok" if succeeded else "orphaned").inc()


def record_signed_url(bucket: str) -> None:
    SIGNED_URLS_COUNTER.labels(bucket=bucket).inc()
