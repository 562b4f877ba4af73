"""
Brainswarm Backend — Request ID Middleware
===========================================

What:  Assigns a correlation ID to each request and echoes it back.
How:   Reuses a client-supplied X-Request-ID, otherwise generates a short
       one. The ID is stored in a ContextVar so loggers and exception
       handlers can read it without access to the request object.
Who:   Applied to every request via Starlette middleware.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Client IDs are capped so a hostile header cannot bloat every log line
        rid = request.headers.get(REQUEST_ID_HEADER, "")[:64] or new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
