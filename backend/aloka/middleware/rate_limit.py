"""
ALOKA Backend — Rate Limiting Middleware
=========================================

What:  Per-IP sliding window rate limiter.
Why:   The listing endpoint is public and unauthenticated, and signup/login
       are password-guessing targets.
How:   Keeps each IP's request timestamps inside the window; rejects with
       429 once the window holds RATE_LIMIT_REQUESTS entries.

Algorithm: Sliding Window Log
    1. Drop timestamps older than now - window
    2. If remaining count >= limit, reject with 429 and Retry-After
    3. Otherwise record now and pass through

Scope:
    In-memory and per process. Multiple uvicorn workers each keep their own
    windows; a shared limiter needs an external store.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from aloka.config import settings
from aloka.exceptions import RateLimitExceededError
from aloka.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Sweep inactive IPs once every this many recorded requests
CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Limits are read from settings on every request, so tests and operators
    can tighten them without rebuilding the app.

    Excluded paths: /health and the API docs are never limited.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window = settings.rate_limit_window
        window_start = now - window

        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= settings.rate_limit_requests:
            retry_after = int(timestamps[0] + window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(timestamps),
                window,
            )
            return self._reject(RateLimitExceededError(retry_after=retry_after))

        timestamps.append(now)
        self._recorded += 1
        if self._recorded % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    @staticmethod
    def _reject(exc: RateLimitExceededError) -> JSONResponse:
        # Raised errors inside BaseHTTPMiddleware bypass the app's exception
        # handlers, so the 429 body is built here in the shared error format
        return JSONResponse(
            status_code=429,
            content={
                "success": False,
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "details": exc.context,
                "request_id": request_id_var.get(""),
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Forget IPs with no requests inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
