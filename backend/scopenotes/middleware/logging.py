"""
ScopeNotes Backend — Request Logging Middleware
=================================================

What:  One access-log line per request: method, path, category header,
       status, duration, request id.
How:   Times the downstream call and picks the log level from the status
       code (5xx → ERROR, 4xx → WARNING, otherwise INFO).

Only the category header is logged from the request; bodies and other
headers are not.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from scopenotes.config import settings
from scopenotes.middleware.request_id import request_id_var

logger = logging.getLogger("scopenotes.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request except /health."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        # Health probes run every few seconds
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        category = request.headers.get(settings.category_header, "-")
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
            "%s %s category=%s %d %.1fms [%s] from %s",
            request.method,
            path,
            category,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "category": category,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
