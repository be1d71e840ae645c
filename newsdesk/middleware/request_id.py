"""
Newsdesk Backend — Request ID Middleware
==========================================

What:  Tags every request with a correlation ID and echoes it back in the
       X-Request-ID response header.
Why:   Error bodies carry the same ID, so a failed request can be matched
       to its log lines.
How:   A client-supplied X-Request-ID is reused when it is short and plain;
       otherwise a new one is generated. The ID is stored in a ContextVar
       that the exception handlers and access logger read.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client IDs end up in logs; anything else is replaced
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get(REQUEST_ID_HEADER, "")
        rid = supplied if _ACCEPTED_ID.match(supplied) else new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
