"""
Response wrapper that copies the body sent to the client.
"""

import io
from typing import Dict, List, Optional, Tuple

from starlette.types import Message, Send

from .request import DEFAULT_CHARSET


class BufferedResponse:
    """Forwards ASGI response messages and keeps a copy of the body bytes."""

    def __init__(self, send: Send, charset: str = DEFAULT_CHARSET):
        self._parent = send
        self._charset = charset
        self._output = io.BytesIO()
        self._raw_headers: List[Tuple[bytes, bytes]] = []
        self.status_code: Optional[int] = None

    async def send(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status_code = message["status"]
            self._raw_headers = list(message.get("headers", []))
        elif message["type"] == "http.response.body":
            self._output.write(message.get("body", b""))
        await self._parent(message)

    @property
    def headers(self) -> Dict[str, List[str]]:
        result: Dict[str, List[str]] = {}
        for name, value in self._raw_headers:
            result.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        return result

    def get_header(self, name: str) -> Optional[str]:
        values = self.headers.get(name.lower())
        return values[0] if values else None

    @property
    def content_type(self) -> Optional[str]:
        return self.get_header("content-type")

    @property
    def charset(self) -> str:
        return self._charset

    @property
    def body(self) -> bytes:
        return self._output.getvalue()

    @property
    def body_as_string(self) -> str:
        return self.body.decode(self._charset, errors="replace")
