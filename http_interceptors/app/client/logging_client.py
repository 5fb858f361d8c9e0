"""
Logging for outgoing HTTP client calls.
"""

from typing import Any, Dict, List

import httpx

from shared.logging import get_logger
from ..content_types import get_charset, resolve_charset

DEFAULT_CHARSET = "utf-8"


class LoggingClientHooks:
    """httpx event hooks that log outgoing requests and their responses."""

    def __init__(self, default_charset: str = DEFAULT_CHARSET):
        self.logger = get_logger("interceptors.http_client")
        self.default_charset = resolve_charset(default_charset, DEFAULT_CHARSET, self.logger)

    @property
    def event_hooks(self) -> Dict[str, List[Any]]:
        return {
            "request": [self.log_request],
            "response": [self.log_response],
        }

    async def log_request(self, request: httpx.Request) -> None:
        body = await request.aread()
        self.logger.debug(
            "HTTP client request",
            uri=str(request.url),
            method=request.method,
            headers=dict(request.headers),
            body=body.decode(self._get_charset(request.headers), errors="replace")
        )

    async def log_response(self, response: httpx.Response) -> None:
        # Reading here buffers the body, so the caller can still consume it.
        body = await response.aread()
        self.logger.debug(
            "HTTP client response",
            status_code=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            body=body.decode(self._get_charset(response.headers), errors="replace")
        )

    def _get_charset(self, headers: httpx.Headers) -> str:
        charset = get_charset(headers.get("content-type"))
        if charset is None:
            return self.default_charset
        return resolve_charset(charset, self.default_charset, self.logger)


def create_logging_client(default_charset: str = DEFAULT_CHARSET, **kwargs) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` that logs every call it makes."""
    hooks = LoggingClientHooks(default_charset)
    event_hooks = kwargs.pop("event_hooks", {})
    merged = {
        name: list(event_hooks.get(name, [])) + handlers
        for name, handlers in hooks.event_hooks.items()
    }
    return httpx.AsyncClient(event_hooks=merged, **kwargs)
