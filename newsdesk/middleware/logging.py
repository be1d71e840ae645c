"""
Newsdesk Backend — Access Log Middleware
==========================================

What:  One log line per request: method, path, status, duration, request ID.
How:   Severity follows the status (5xx ERROR, 4xx WARNING, else INFO).
       Image file requests under /uploads log at DEBUG; a page render can
       fetch dozens of them.

Request bodies are never logged; they can hold passwords and multi-megabyte
embedded images.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from newsdesk.middleware.request_id import request_id_var

logger = logging.getLogger("newsdesk.access")

QUIET_PATHS = {"/health"}


def level_for(path: str, status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    if path.startswith("/uploads/"):
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        logger.log(
            level_for(path, response.status_code),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response
