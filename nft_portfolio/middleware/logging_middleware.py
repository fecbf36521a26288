"""
HTTP request logging middleware.

Every request gets a request id. For portfolio lookups the contract and
owner from the query string are bound as well, so the pipeline's own log
lines (which carry the run id) share keys with the access log line.
"""

import time
import uuid
from typing import Dict

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

# Query parameters worth carrying into every downstream log line
LOOKUP_PARAMS = ("contract", "owner")


def lookup_context(request: Request) -> Dict[str, str]:
    """Contract/owner pair of a lookup request, truncated to address length."""
    context = {}
    for param in LOOKUP_PARAMS:
        value = request.query_params.get(param)
        if value:
            context[param] = value.strip()[:42]
    return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing, status and the wallet being looked up."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])
        context = lookup_context(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, **context)

        start = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            log = logger.info if status_code < 400 else logger.warning
            if status_code >= 500:
                log = logger.error

            log(
                "portfolio_request" if context else "http_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration_ms=duration_ms,
            )
