"""
Request context holder.

Publishes the request being handled in a context variable so code that does
not receive the request explicitly (such as the anti-replay decorator) can
still reach it, and binds a request ID for log correlation.
"""

from contextvars import ContextVar
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from shared.logging import clear_context, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"

current_request_var: ContextVar[Optional[Request]] = ContextVar("current_request", default=None)


def current_request() -> Optional[Request]:
    """The request bound to the current context, if any."""
    return current_request_var.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds the current request and its request ID to the context."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = current_request_var.set(request)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            current_request_var.reset(token)
            clear_context()
