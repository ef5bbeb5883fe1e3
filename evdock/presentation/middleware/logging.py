"""Request/response logging middleware with timing."""

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from evdock.core.config import settings
from evdock.core.metrics import record_http_request

from .request_context import get_request_id

logger = structlog.get_logger(__name__)

UNMATCHED_ENDPOINT = "unmatched"


def route_template(request: Request) -> str:
    """
    Path template of the route that handled the request, e.g.
    /v1/installments/{installment_id}.

    Read from the route the router stored in the scope. Routes of an
    included router may carry their template without the include prefix,
    so missing leading segments are taken from the request path.
    """
    route = request.scope.get("route")
    template = getattr(route, "path_format", None) or getattr(route, "path", None)
    if not template:
        return UNMATCHED_ENDPOINT

    path_parts = request.url.path.strip("/").split("/")
    template_parts = template.strip("/").split("/")
    missing = len(path_parts) - len(template_parts)
    prefix = "".join(f"/{part}" for part in path_parts[:missing]) if missing > 0 else ""
    return prefix + template


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs request start, completion, and duration, and records HTTP metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        query = str(request.query_params) if request.query_params else None

        log = logger.bind(
            request_id=get_request_id(),
            method=method,
            path=path,
        )

        log.info("request_started", query=query)

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            log.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            if settings.metrics_enabled:
                record_http_request(method, route_template(request), response.status_code, duration)

            return response

        except Exception as e:
            duration = time.perf_counter() - start_time

            log.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration * 1000, 2),
            )
            if settings.metrics_enabled:
                record_http_request(method, route_template(request), 500, duration)
            raise
