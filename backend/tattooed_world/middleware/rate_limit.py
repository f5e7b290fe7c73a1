"""
Tattooed World Backend — Rate Limiting Middleware
===================================================

What:  Per-client sliding-window request limiter.
How:   Keeps a deque of request timestamps per client IP. Timestamps older
       than `rate_limit_window` seconds are dropped on every request; once
       `rate_limit_requests` remain the request is refused with 429 and a
       Retry-After equal to the time until the oldest one leaves the window.
Who:   Every request except health checks and API docs.

Scope:
    State lives in process memory, so each uvicorn worker counts on its own.
    Multi-instance deployments need a shared store (e.g. Redis) instead.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from tattooed_world.config import settings
from tattooed_world.exceptions import RateLimitExceededError
from tattooed_world.middleware.logging import client_ip
from tattooed_world.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Forget idle clients after this many tracked requests
SWEEP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, clock: Callable[[], float] = time.monotonic, **kwargs):
        super().__init__(app, **kwargs)
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._since_sweep = 0

    def check(self, key: str) -> None:
        """Records one hit for `key`; raises RateLimitExceededError when over quota."""
        now = self._clock()
        window = settings.rate_limit_window
        hits = self._hits[key]
        while hits and hits[0] <= now - window:
            hits.popleft()

        if len(hits) >= settings.rate_limit_requests:
            retry_after = max(1, int(hits[0] + window - now) + 1)
            raise RateLimitExceededError(retry_after=retry_after)

        hits.append(now)
        self._since_sweep += 1
        if self._since_sweep >= SWEEP_EVERY:
            self._sweep(now - window)

    def _sweep(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        self._since_sweep = 0
        if idle:
            logger.debug("Rate limiter dropped %d idle clients", len(idle))

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        ip = client_ip(request)
        try:
            self.check(ip)
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                ip,
                settings.rate_limit_requests,
                settings.rate_limit_window,
            )
            # Raised outside the router, so the app's exception handlers never see it
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)
