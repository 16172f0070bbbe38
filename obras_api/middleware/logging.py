from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

ACCESS_LOGGER_NAME = "obras_api.access"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One JSON access line per request, tagged with a request id and the acting user."""

    def __init__(self, app, logger: logging.Logger | None = None) -> None:
        super().__init__(app)
        self.logger = logger if logger is not None else logging.getLogger(ACCESS_LOGGER_NAME)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self._log(self._payload(request, "http_request_error", 500, start), level=logging.ERROR)
            raise

        response.headers.setdefault("x-request-id", request_id)
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        self._log(self._payload(request, "http_request", response.status_code, start), level=level)
        return response

    @staticmethod
    def _payload(request: Request, event: str, status_code: int, start: float) -> dict[str, object]:
        payload: dict[str, object] = {
            "event": event,
            "request_id": request.state.request_id,
            "method": request.method,
            "path": request.url.path,
            "status": status_code,
            "duration_ms": int((time.perf_counter() - start) * 1000),
        }
        content_length = request.headers.get("content-length")
        if content_length and request.method in {"POST", "PUT"}:
            payload["content_length"] = int(content_length) if content_length.isdigit() else content_length
        if getattr(request.state, "user_id", None):
            payload["user_id"] = request.state.user_id
        return payload

    def _log(self, payload: dict[str, object], level: int = logging.INFO) -> None:
        self.logger.log(level, json.dumps(payload, separators=(",", ":")))
