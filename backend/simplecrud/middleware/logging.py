"""
simple-crud — Request Logging Middleware
=========================================

What:  One access-log line per request: method, key, status, duration, client.
How:   Measures time around the downstream handler and logs at a level chosen
       from the status class (5xx ERROR, 4xx WARNING, else INFO).
Who:   Applied to every request via Starlette middleware, inside
       RequestIDMiddleware so the request ID is already set.

Request bodies are never logged here.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from simplecrud.middleware.request_id import request_id_var
from simplecrud.routes.dispatcher import request_key

logger = logging.getLogger("simplecrud.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured information about each HTTP request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        # request.client may be None in testing
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        key = request_key(request)
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            key,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": key,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
