"""
Tattooed World Backend — Request ID Middleware
================================================

What:  Tags every request with a short correlation ID.
How:   Reuses a well-formed client `X-Request-ID` (the web client sends one
       per user action), otherwise generates 8 hex characters. The ID is
       stored in a ContextVar for loggers and exception handlers, on
       `request.state` for route handlers, and echoed in the response header.
Who:   Every request. Error bodies carry it as `request_id`, so a support
       ticket can be matched to the server log line.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client IDs end up in log lines; anything else is replaced
_VALID_CLIENT_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming = request.headers.get("X-Request-ID", "")
        rid = incoming if _VALID_CLIENT_ID.match(incoming) else new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
