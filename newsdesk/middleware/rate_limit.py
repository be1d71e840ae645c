"""
Newsdesk Backend — Rate Limiting Middleware
=============================================

What:  Per-IP sliding-window limit on API requests.
How:   Each client IP keeps a deque of request timestamps. Timestamps older
       than RATE_LIMIT_WINDOW are dropped on every request; once the deque
       holds RATE_LIMIT_REQUESTS entries the request is answered with 429.

Not limited:
    /uploads/*     image files are fetched by browsers in bulk (one per <img>)
    /health, /api/test, API docs

State is in-process memory, so each worker process counts separately.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from newsdesk.config import settings
from newsdesk.exceptions import RateLimitExceededError
from newsdesk.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

EXCLUDED_PATHS = {"/health", "/api/test", "/docs", "/redoc", "/openapi.json"}
EXCLUDED_PREFIXES = ("/uploads/",)

# Forget idle clients every this many tracked requests
_SWEEP_EVERY = 1000


def is_rate_limited_path(path: str) -> bool:
    return path not in EXCLUDED_PATHS and not path.startswith(EXCLUDED_PREFIXES)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._hits: Dict[str, Deque[float]] = {}
        self._since_sweep = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not is_rate_limited_path(request.url.path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        window = settings.rate_limit_window

        hits = self._hits.setdefault(client_ip, deque())
        while hits and hits[0] <= now - window:
            hits.popleft()

        if len(hits) >= settings.rate_limit_requests:
            retry_after = int(hits[0] + window - now) + 1
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                client_ip,
                len(hits),
                window,
            )
            error = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": error.message,
                    "details": error.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        hits.append(now)
        self._since_sweep += 1
        if self._since_sweep >= _SWEEP_EVERY:
            self._sweep(now - window)
        return await call_next(request)

    def _sweep(self, window_start: float) -> None:
        idle = [ip for ip, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for ip in idle:
            del self._hits[ip]
        self._since_sweep = 0
        if idle:
            logger.debug("Rate limiter forgot %d idle clients", len(idle))
