"""
Brainswarm Backend — Rate Limiting Middleware
==============================================

What:  Sliding-window request throttle, keyed per caller.
How:   Authenticated callers are keyed by a digest of their bearer token,
       anonymous ones by client IP, so one office behind a NAT does not
       share a single allowance. Timestamps live in process memory.
Who:   Applied to every request via Starlette middleware.

Algorithm: Sliding Window Log
    1. Each key keeps the timestamps of its recent requests
    2. Timestamps older than the window are dropped on every hit
    3. At `rate_limit_requests` remaining timestamps the request is
       rejected with 429 and a Retry-After header

In-memory state is per process. Running several workers multiplies the
effective limit by the worker count.
"""

import hashlib
import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from brainswarm.config import settings
from brainswarm.exceptions import RateLimitExceededError
from brainswarm.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

CLEANUP_EVERY = 1000


def rate_limit_key(request: Request) -> str:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer ") and len(auth) > 7:
        return "token:" + hashlib.sha256(auth[7:].encode()).hexdigest()[:16]
    client_ip = request.client.host if request.client else "unknown"
    return "ip:" + client_ip


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Configuration (from settings):
        rate_limit_requests: Max requests per window (default: 1000)
        rate_limit_window:   Window length in seconds (default: 3600)
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._hits = 0

    def check(self, key: str, now: float) -> None:
        """Record a hit for `key` or raise RateLimitExceededError."""
        window_start = now - self.window_seconds
        recent = [ts for ts in self._requests[key] if ts > window_start]
        self._requests[key] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window_seconds - now) + 1
            raise RateLimitExceededError(retry_after=retry_after)

        recent.append(now)
        self._hits += 1
        if self._hits % CLEANUP_EVERY == 0:
            self._cleanup_inactive(window_start)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        key = rate_limit_key(request)
        try:
            self.check(key, time.time())
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds window",
                key,
                len(self._requests[key]),
                self.window_seconds,
            )
            # Raised outside the router, so the app's exception handlers never see it
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": exc.error_code,
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)

    def _cleanup_inactive(self, window_start: float) -> None:
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for key in inactive:
            del self._requests[key]

        if inactive:
            logger.debug("Cleaned up %d inactive rate-limit keys", len(inactive))
