"""
HTTP request/response logging middleware.

Both bodies are buffered so they can be logged without starving the
downstream application of its input or the client of its output.
"""

from typing import Dict, List

from starlette.types import ASGIApp, Receive, Scope, Send

from shared.logging import get_logger
from ..buffering import BufferedRequest, BufferedResponse
from ..buffering.request import DEFAULT_CHARSET
from ..content_types import get_charset, is_binary, is_file_download, is_multipart, resolve_charset

IGNORED_UPLOAD_CONTENT = "<Ignore the content of uploaded file>"
IGNORED_DOWNLOAD_CONTENT = "<Ignore the content of file download>"


class HttpLoggingMiddleware:
    """Logs every HTTP request and response, including their bodies."""

    def __init__(
        self,
        app: ASGIApp,
        enabled: bool = True,
        print_multipart_content: bool = False,
        print_text_file_download_content: bool = False,
        default_charset: str = DEFAULT_CHARSET,
    ):
        self.app = app
        self.enabled = enabled
        self.print_multipart_content = print_multipart_content
        self.print_text_file_download_content = print_text_file_download_content
        self.logger = get_logger("interceptors.http_logging")
        self.default_charset = resolve_charset(default_charset, DEFAULT_CHARSET, self.logger)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self.enabled:
            await self.app(scope, receive, send)
            return

        charset = self._get_charset(scope)
        request = await BufferedRequest.load(scope, receive, charset)
        response = BufferedResponse(send, charset)
        await self._log_request(request)
        await self.app(scope, request.receive(), response.send)
        self._log_response(response)

    def _get_charset(self, scope: Scope) -> str:
        content_type = None
        for name, value in scope.get("headers", []):
            if name.lower() == b"content-type":
                content_type = value.decode("latin-1")
                break
        return resolve_charset(get_charset(content_type), self.default_charset, self.logger)

    async def _log_request(self, request: BufferedRequest) -> None:
        if is_multipart(request.content_type):
            await self._log_multipart(request)
            body = request.body_as_string if self.print_multipart_content else IGNORED_UPLOAD_CONTENT
        else:
            body = request.body_as_string

        self.logger.debug(
            "HTTP request",
            uri=request.uri,
            method=request.method,
            remote_ip=request.remote_addr,
            content_type=request.content_type,
            params=self._flatten(request.parameters),
            headers=self._flatten(request.headers),
            body=body
        )

    async def _log_multipart(self, request: BufferedRequest) -> None:
        try:
            parts = await request.parts()
            self.logger.debug("Multipart request", part_count=len(parts))
            for part in parts:
                self.logger.debug(
                    "Multipart part",
                    name=part.name,
                    filename=part.filename,
                    header=part.content_disposition
                )
        except Exception as e:
            self.logger.error("Failed to parse the multipart request", error=str(e), exc_info=True)

    def _log_response(self, response: BufferedResponse) -> None:
        if is_file_download(response.get_header("content-disposition")):
            if is_binary(response.content_type) or not self.print_text_file_download_content:
                body = IGNORED_DOWNLOAD_CONTENT
            else:
                body = response.body_as_string
        else:
            body = response.body_as_string

        self.logger.debug(
            "HTTP response",
            status_code=response.status_code,
            headers=self._flatten(response.headers),
            body=body
        )

    @staticmethod
    def _flatten(values: Dict[str, List[str]]) -> List[str]:
        return [f"{name} = '{value}'" for name, items in values.items() for value in items]
