"""Per-request logging context for the Projectflow API.

Every request gets a correlation id (taken from ``X-Correlation-ID`` or
generated) that is attached to all log events emitted while it is handled
and echoed on the response. Health probes are logged at debug level.
"""

from __future__ import annotations

import time
import uuid
from typing import TYPE_CHECKING

import structlog
from starlette.middleware.base import BaseHTTPMiddleware

from projectflow.logging import get_logger, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind request context and log one summary event per request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())

        # Context from a previous request on this task must not leak in
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
        set_correlation_id(correlation_id)

        log = logger.debug if request.url.path.startswith("/health") else logger.info
        started = time.perf_counter()
        try:
            response = await call_next(request)
            log(
                "request_handled",
                status_code=response.status_code,
                elapsed_ms=_elapsed_ms(started),
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        except Exception:
            logger.exception("request_failed", elapsed_ms=_elapsed_ms(started))
            raise
        finally:
            set_correlation_id(None)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
