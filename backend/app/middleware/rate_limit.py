"""
Plateful Backend — Rate Limiting Middleware
=============================================

What:  Per-IP sliding window rate limiter.
Why:   Vote endpoints are unauthenticated writes; a single client hammering
       them would otherwise serialize every other voter behind the
       per-restaurant lock.
How:   Keeps each IP's request timestamps within the window; once the
       count reaches RATE_LIMIT_REQUESTS the request is answered with 429.

Single-process only: each uvicorn worker keeps its own counters.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding window rate limiter, keyed by client IP."""

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    # Forget idle IPs every N recorded requests
    CLEANUP_EVERY = 1000

    def __init__(self, app, max_requests: int = None, window_seconds: int = None, **kwargs):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._since_cleanup = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        window_start = now - self.window_seconds

        timestamps = self._requests[client_ip]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                self.window_seconds,
            )
            # Middleware sits outside the exception handlers, so build the
            # 429 body here from the same exception type the handler uses.
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                },
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)
        self._since_cleanup += 1
        if self._since_cleanup >= self.CLEANUP_EVERY:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Drop IPs whose newest request is older than the window."""
        self._since_cleanup = 0
        inactive = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive))
