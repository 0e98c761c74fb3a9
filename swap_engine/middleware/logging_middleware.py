"""
HTTP request logging middleware.

Binds a request id (and the swap slot for /sessions routes) to the structlog
context, then logs one line per request with status and duration.
"""

import time
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

SESSIONS_PREFIX = "/sessions/"


def _slot_from_path(path: str) -> Optional[str]:
    if not path.startswith(SESSIONS_PREFIX):
        return None
    slot = path[len(SESSIONS_PREFIX):].split("/", 1)[0]
    return slot or None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing and status info."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])
        path = request.url.path

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        slot = _slot_from_path(path)
        if slot:
            structlog.contextvars.bind_contextvars(swap_slot=slot)

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                "http_request",
                method=request.method,
                path=path,
                status=status_code,
                duration_ms=duration_ms,
            )
