"""
Request logging middleware.

Every API and page request gets a short id that prefixes its log lines and
is returned in the X-Request-ID header.
"""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of each request."""

    # Logged at DEBUG
    quiet_paths = ("/health", "/favicon.ico")

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id = uuid.uuid4().hex[:8]
        request.state.request_id = req_id
        label = f"[{req_id}] {request.method} {request.url.path}"

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(f"{label} failed after {elapsed_ms:.0f}ms", exc_info=True)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.DEBUG if request.url.path in self.quiet_paths else logging.INFO
        logger.log(
            level,
            f"{label} -> {response.status_code} in {elapsed_ms:.0f}ms",
            extra={"request_id": req_id, "status_code": response.status_code},
        )

        response.headers[REQUEST_ID_HEADER] = req_id
        return response
