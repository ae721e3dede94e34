"""
DroneSpot Backend: Request Logging Middleware
===============================================

What:  One access log line per request: method, path, status, duration,
       request ID, client IP.
Why:   Upstream latency (vision model, geocoder) dominates response time;
       the per-request duration shows which provider is slow.
How:   Level follows the status code (5xx ERROR, 4xx WARNING, else INFO).
       Health probes are not logged.
When:  Inside RequestIDMiddleware, so the ID is already set.

Request bodies are never logged: they carry user photos and addresses.

Typical durations:
    - GET /api/test: 1-5ms
    - POST /api/geocode: 100-400ms (Google round trip)
    - POST /api/analyze-image: 3000-15000ms (vision model dominates)
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from dronespot.middleware.request_id import request_id_var

logger = logging.getLogger("dronespot.access")

# Polled by the load balancer every few seconds
SILENT_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SILENT_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        response = await call_next(request)

        # Includes upstream calls made by the handler
        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        # Client mistakes are warnings; our failures and upstream outages are errors
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        # extra= keeps the fields available to structured log handlers
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
