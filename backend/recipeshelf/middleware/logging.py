"""
RecipeShelf Backend — Request Logging Middleware
=================================================

What:  One access-log line per request: method, path, status, duration,
       request id, acting user and client address.
When:  Runs inside RequestIDMiddleware, so the request id is already set.

Level by status: 5xx → ERROR, 4xx → WARNING, otherwise INFO.
Never logged: request bodies (recipe content is user data).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from recipeshelf.config import settings
from recipeshelf.middleware.request_id import request_id_var

logger = logging.getLogger("recipeshelf.access")

QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        user_id = request.headers.get(settings.auth_header) or "-"
        rid = request_id_var.get("")
        status = response.status_code

        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            user_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "user_id": user_id,
                "client_ip": client_ip,
            },
        )
        return response
