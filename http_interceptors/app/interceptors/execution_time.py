"""
Execution time logging middleware.
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from shared.logging import get_logger

START_TIME = "start-time"


def current_millis() -> int:
    return int(time.time() * 1000)


class ExecutionTimeMiddleware(BaseHTTPMiddleware):
    """Logs how long each request takes to be handled."""

    def __init__(self, app: ASGIApp, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled
        self.logger = get_logger("interceptors.execution_time")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.enabled:
            return await call_next(request)

        self.logger.debug("Executing request", method=request.method, path=request.url.path)
        start_time = current_millis()
        request.scope.setdefault("state", {})[START_TIME] = start_time

        response = await call_next(request)

        duration = current_millis() - request.scope["state"][START_TIME]
        self.logger.debug(
            "Executing the request finished",
            method=request.method,
            path=request.url.path,
            duration_ms=duration
        )
        return response
