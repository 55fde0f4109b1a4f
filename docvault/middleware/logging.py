"""Per-request JSON access lines plus the request context the API reads back.

Every request gets ``request.state.request_id`` (taken from ``X-Request-ID``
when the caller sends one) and ``request.state.client_ip`` (first hop of
``X-Forwarded-For``, else the socket peer). Document access entries and
error bodies use both.
"""

import json
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("docvault.access")

REQUEST_ID_HEADER = "X-Request-ID"


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.client_ip = client_ip(request)
        started = time.perf_counter()

        response = await call_next(request)

        entry = {
            "request_id": request.state.request_id,
            "method": request.method,
            "path": request.url.path,
            "query": str(request.url.query) or None,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            "client_ip": request.state.client_ip,
            "user_id": request.headers.get("x-user-id"),
        }
        if response.status_code >= 500:
            logger.error(json.dumps(entry))
        elif response.status_code >= 400:
            logger.warning(json.dumps(entry))
        else:
            logger.info(json.dumps(entry))

        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        return response
