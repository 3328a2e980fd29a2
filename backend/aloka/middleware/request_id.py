"""
ALOKA Backend — Request ID Middleware
======================================

What:  Assigns a correlation ID to each request and echoes it in X-Request-ID.
Why:   Error bodies carry the same ID, so a user report ("request a1b2c3d4
       failed") maps straight to the server log lines for that request.
How:   Reuses a client-supplied X-Request-ID, else generates a short UUID;
       stores it in a ContextVar for loggers and exception handlers.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client-supplied IDs longer than this are replaced, they end up in every log line
MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Use the client's X-Request-ID header if present and reasonably short
        2. Otherwise generate an 8-character ID
        3. Store in ContextVar and request.state
        4. Add to response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", "")
        if not rid or len(rid) > MAX_REQUEST_ID_LENGTH:
            rid = str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
