"""
DroneSpot Backend: Request ID Middleware
==========================================

What:  Assigns every request a short correlation ID.
Why:   One analyze request fans out to the upload store, a vision provider
       and the location pipeline; a shared ID ties their log lines together
       and lets a user quote the ID from an error body.
How:   Reuses the client's X-Request-ID header when present, otherwise
       generates one; stores it in a ContextVar for loggers and error
       handlers and echoes it in the response header.
When:  Outermost middleware, so the access log and every handler see the ID.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ── Context Variable ──────────────────────────────────────────────────────
# Coroutine-local: concurrent requests share one thread on the event loop,
# so threading.local would leak IDs between them.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Take X-Request-ID from the client if it sent one (the map front
           end can tag a drop-a-photo action before uploading)
        2. Otherwise generate an 8-character ID
        3. Publish it through request_id_var and request.state
        4. Echo it back in the X-Request-ID response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 hex chars are enough to correlate one process's logs
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        # ContextVar for loggers and exception handlers, request.state for routes
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        # Error bodies carry it too; the header covers successful responses
        response.headers["X-Request-ID"] = rid
        return response
