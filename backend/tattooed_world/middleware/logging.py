"""
Tattooed World Backend — Access Log Middleware
================================================

What:  One log line per request on the `tattooed_world.access` logger:
       method, path, status, duration, request ID and client IP.
How:   Level follows the status class (5xx ERROR, 4xx WARNING, else INFO);
       the same values are attached as `extra` fields for log shippers.

Never logged: bodies (passwords, tokens), query strings (reset tokens may
travel there from e-mail links), Authorization headers.

/health is skipped; load balancers poll it every few seconds.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from tattooed_world.middleware.request_id import request_id_var

logger = logging.getLogger("tattooed_world.access")

QUIET_PATHS = {"/health"}


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind the platform proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        rid = request_id_var.get("")
        ip = client_ip(request)
        status = response.status_code
        logger.log(
            _level_for(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": ip,
            },
        )
        return response
