"""
CORS header middleware.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from shared.logging import get_logger

DEFAULT_ALLOW_ORIGIN = "*"
DEFAULT_ALLOW_METHODS = "GET, HEAD, POST, PUT, DELETE, PATCH, OPTIONS"
DEFAULT_ALLOW_HEADERS = "X-Auth-Token, X-Auth-App-Token, X-Auth-User-Token, Content-Type"
DEFAULT_MAX_AGE = 86400


class CorsMiddleware(BaseHTTPMiddleware):
    """Adds the configured CORS headers to every HTTP response.

    Headers the handler already set on its response are kept.
    """

    def __init__(
        self,
        app: ASGIApp,
        enabled: bool = True,
        allow_origin: str = DEFAULT_ALLOW_ORIGIN,
        allow_methods: str = DEFAULT_ALLOW_METHODS,
        allow_headers: str = DEFAULT_ALLOW_HEADERS,
        allow_credentials: bool = False,
        max_age: int = DEFAULT_MAX_AGE,
    ):
        super().__init__(app)
        self.enabled = enabled
        self.logger = get_logger("interceptors.cors")
        self.cors_headers = {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Methods": allow_methods,
            "Access-Control-Allow-Headers": allow_headers,
            "Access-Control-Allow-Credentials": "true" if allow_credentials else "false",
            "Access-Control-Max-Age": str(max_age),
        }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.enabled:
            return await call_next(request)

        response = await call_next(request)
        for name, value in self.cors_headers.items():
            response.headers.setdefault(name, value)
        self.logger.debug("CORS configuration completed", path=request.url.path)
        return response
