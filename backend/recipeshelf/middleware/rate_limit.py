"""
RecipeShelf Backend — Write Rate Limiting Middleware
=====================================================

What:  Per-client sliding-window limit on write requests (POST/PUT/PATCH/DELETE).
How:   Keeps the timestamps of each client's writes inside the window.
       Once `rate_limit_requests` writes fall inside `rate_limit_window`
       seconds, further writes get 429 with `Retry-After`. Reads are never limited.

Client key: the user id header when it is a well-formed UUID, else the peer address.

Limitation:
    State is in process memory, so the limit is per worker. Multi-worker
    deployments need a shared store (e.g. Redis) instead.
"""

import logging
import time
import uuid
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from recipeshelf.config import settings
from recipeshelf.exceptions import RateLimitExceededError
from recipeshelf.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(
        self,
        app: ASGIApp,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        """Limits default to settings.rate_limit_requests / settings.rate_limit_window."""
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._seen = 0

    @staticmethod
    def client_key(request: Request) -> str:
        """Key by user id when the header holds a well-formed UUID, else by peer address."""
        try:
            return f"user:{uuid.UUID(request.headers.get(settings.auth_header, '').strip())}"
        except ValueError:
            host = request.client.host if request.client else "unknown"
            return f"ip:{host}"

    def check(self, key: str, now: float) -> None:
        """Record one write for `key` or raise RateLimitExceededError."""
        window_start = now - self.window_seconds
        timestamps = self._requests[key]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window_seconds - now) + 1
            raise RateLimitExceededError(retry_after=retry_after, context={"client": key})

        timestamps.append(now)
        self._seen += 1
        if self._seen % 1000 == 0:
            self._cleanup(window_start)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method not in WRITE_METHODS:
            return await call_next(request)

        key = self.client_key(request)
        try:
            self.check(key, time.time())
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded for %s: %d writes in %ds",
                key,
                self.max_requests,
                self.window_seconds,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": {"retry_after": exc.retry_after},
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )
        return await call_next(request)

    def _cleanup(self, window_start: float) -> None:
        idle = [key for key, stamps in self._requests.items() if not stamps or stamps[-1] <= window_start]
        for key in idle:
            del self._requests[key]
        if idle:
            logger.debug("Dropped rate-limit state of %d idle clients", len(idle))
