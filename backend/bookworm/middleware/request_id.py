"""
BookWorm Backend — Request ID Middleware
==========================================

What:  Assigns a short correlation ID to every request and returns it in the
       X-Request-ID response header.
How:   Stores the ID in a ContextVar (read by the access log and the error
       handlers) and on request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Reuse the client's X-Request-ID when present (truncated to 64 chars)
        2. Otherwise generate an 8-character ID
        3. Expose it via request_id_var and request.state.request_id
        4. Echo it in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        rid = rid[:MAX_CLIENT_ID_LENGTH]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
