# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
HTTP Middleware — request ID propagation and per-route Prometheus metrics.
"""

import re
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from oncall_rotation.core.logging import get_logger
from oncall_rotation.metrics.prometheus import HTTP_ERRORS, REQUEST_COUNT, REQUEST_LATENCY

logger = get_logger(__name__)

# Caller-supplied ids are echoed into logs and headers, so keep them tame.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

# Probes and docs stay out of the request metrics.
UNTRACKED_PATHS = frozenset(
    {"/health", "/health/ready", "/metrics", "/openapi.json", "/docs", "/redoc"}
)

SLOW_REQUEST_SECONDS = 2.0


def route_template(request: Request) -> str:
    """`/api/v1/admin/history/{entry_id}` rather than the concrete path."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Honour a well-formed X-Request-ID or mint one; echo it on the response."""

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get("X-Request-ID", "")
        request_id = incoming if _REQUEST_ID_RE.match(incoming) else uuid.uuid4().hex
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count and time requests by route template; log slow ones."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        if request.url.path in UNTRACKED_PATHS:
            return response

        endpoint = route_template(request)
        status = str(response.status_code)
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY.labels(method=request.method, endpoint=endpoint).observe(elapsed)
        if response.status_code >= 400:
            HTTP_ERRORS.labels(method=request.method, endpoint=endpoint, status=status).inc()
        if elapsed > SLOW_REQUEST_SECONDS:
            logger.warning(
                "Slow request: %s %s took %.2fs", request.method, endpoint, elapsed,
                extra={"request_id": getattr(request.state, "request_id", None)},
            )
        return response
