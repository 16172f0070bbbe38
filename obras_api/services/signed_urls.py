from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Hashable, Iterable, Optional

from ..config import settings
from .errors import StorageError, StorageNotFoundError
from .metrics import record_signed_url
from .storage import ObjectStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SignedUrl:
    url: str
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) >= self.expires_at


class SignedUrlBroker:
    """Mints short-lived read URLs for stored objects.

    URLs are produced on every request and never persisted; the object must still
    exist in the store, otherwise ``StorageNotFoundError`` is raised so callers can
    disable preview/download without touching the document row.
    """

    def __init__(
        self,
        store: ObjectStore,
        default_ttl: Optional[int] = None,
        max_ttl: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.default_ttl = default_ttl or settings.signed_url_ttl_seconds
        self.max_ttl = max_ttl or settings.signed_url_max_ttl_seconds
        self.clock = clock

    def resolve_ttl(self, expires_in: Optional[int]) -> int:
        if expires_in is None or expires_in <= 0:
            return self.default_ttl
        return min(int(expires_in), self.max_ttl)

    def sign(
        self,
        bucket: str,
        path: str,
        expires_in: Optional[int] = None,
        download_name: Optional[str] = None,
    ) -> SignedUrl:
        if not path:
            raise StorageNotFoundError("Document has no storage path")
        if not self.store.exists(bucket, path):
            raise StorageNotFoundError(f"Object not found: s3://{bucket}/{path}")

        ttl = self.resolve_ttl(expires_in)
        issued_at = self.clock()
        url = self.store.presign_get(bucket, path, ttl, download_name=download_name)
        record_signed_url(bucket)
        return SignedUrl(url=url, expires_at=issued_at + timedelta(seconds=ttl))

    def try_sign(self, bucket: str, path: str, expires_in: Optional[int] = None) -> Optional[SignedUrl]:
        """Best-effort variant used right after uploads and in batch previews."""
        try:
            return self.sign(bucket, path, expires_in)
        except StorageError:
            logger.warning("signed_url_failed bucket=%s path=%s", bucket, path, exc_info=True)
            return None

    def sign_many(
        self,
        items: Iterable[tuple[Hashable, str, str]],
        expires_in: Optional[int] = None,
    ) -> dict[Hashable, SignedUrl]:
        """Sign ``(key, bucket, path)`` triples; failures are logged and left out of the result."""
        signed: dict[Hashable, SignedUrl] = {}
        for key, bucket, path in items:
            result = self.try_sign(bucket, path, expires_in)
            if result is not None:
                signed[key] = result
        return signed
