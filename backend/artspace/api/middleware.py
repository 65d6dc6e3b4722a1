"""
Request middleware: binds curation context for the engine's log lines and
times every request.
"""

import time
import uuid
from typing import Dict

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from artspace.core.logging import get_logger
from artspace.core.metrics import request_latency

logger = get_logger(__name__)

API_PREFIX = "/api/v1/"

# Collection segment in the URL -> id key used by the engine's own events
RESOURCE_KEYS = {
    "artworks": "artwork_id",
    "artists": "artist_id",
    "shows": "show_id",
}


def resource_context(path: str) -> Dict[str, str]:
    """
    Name the entity a curation request acts on, e.g.
    `/api/v1/shows/s1/order` -> `{"show_id": "s1", "action": "order"}`.
    """
    if not path.startswith(API_PREFIX):
        return {}
    parts = [p for p in path[len(API_PREFIX):].split("/") if p]
    if not parts or parts[0] not in RESOURCE_KEYS:
        return {}
    context = {}
    if len(parts) > 1:
        context[RESOURCE_KEYS[parts[0]]] = parts[1]
    if len(parts) > 2:
        context["action"] = parts[2]
    return context


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds the request id (reusing an incoming `X-Request-ID`), the acting
    curator (`X-Curator-Id`) and the artwork/artist/show being changed, then
    logs and times the request. 409 and 5xx responses log at warning so
    retry exhaustion and store outages stand out.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            **resource_context(request.url.path),
        )
        curator_id = request.headers.get("X-Curator-Id")
        if curator_id:
            structlog.contextvars.bind_contextvars(curator_id=curator_id)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        elapsed = time.perf_counter() - started
        request_latency.labels(method=request.method, status_code=str(response.status_code)).observe(elapsed)

        log = logger.warning if response.status_code == 409 or response.status_code >= 500 else logger.info
        log("request_completed", status_code=response.status_code, duration_ms=round(elapsed * 1000, 2))

        response.headers["X-Request-ID"] = request_id
        return response
