"""
Request wrapper whose body can be read any number of times.
"""

import io
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import parse_qsl

from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.types import Receive, Scope

from ..content_types import is_multipart, is_www_form
from .streams import BufferedInputStream, read_body, replay_receive

DEFAULT_CHARSET = "utf-8"


@dataclass
class Part:
    """A single part of a multipart request."""
    name: str
    filename: Optional[str]
    content_type: Optional[str]
    content_disposition: Optional[str]
    value: Optional[str] = None


class BufferedRequest:
    """Buffers the request body once and replays it to every consumer.

    The body is read from the ASGI receive channel exactly once, when the
    wrapper is loaded. Afterwards the same bytes back the input stream, the
    text reader, the parsed parameters and multipart parts, and any number of
    replayed receive channels handed to downstream applications.
    """

    def __init__(self, scope: Scope, body: bytes, charset: str = DEFAULT_CHARSET,
                 parent: Optional[Receive] = None):
        self.scope = scope
        self._body = bytes(body)
        self._charset = charset
        self._parent = parent
        self._request = Request(scope, self.receive())
        self._parameters: Optional[Dict[str, List[str]]] = None
        self._parts: Optional[List[Part]] = None

    @classmethod
    async def load(cls, scope: Scope, receive: Receive, charset: str = DEFAULT_CHARSET) -> "BufferedRequest":
        """Read the whole body from ``receive`` and wrap it."""
        body = await read_body(receive)
        return cls(scope, body, charset, parent=receive)

    @property
    def method(self) -> str:
        return self._request.method

    @property
    def uri(self) -> str:
        return self.scope.get("path", "")

    @property
    def query_string(self) -> str:
        return self.scope.get("query_string", b"").decode("latin-1")

    @property
    def remote_addr(self) -> Optional[str]:
        client = self._request.client
        return client.host if client else None

    @property
    def content_type(self) -> Optional[str]:
        return self._request.headers.get("content-type")

    @property
    def charset(self) -> str:
        return self._charset

    @property
    def body(self) -> bytes:
        return self._body

    @property
    def body_as_string(self) -> str:
        return self._body.decode(self._charset, errors="replace")

    @property
    def headers(self) -> Dict[str, List[str]]:
        """Header values grouped by (lower-cased) header name."""
        result: Dict[str, List[str]] = {}
        for name, value in self._request.headers.items():
            result.setdefault(name, []).append(value)
        return result

    @property
    def parameters(self) -> Dict[str, List[str]]:
        """Query parameters, plus the form fields of the body.

        URL-encoded fields are always included. Multipart text fields are
        included once the parts have been parsed with ``parts()``.
        """
        if self._parameters is None:
            parameters: Dict[str, List[str]] = {}
            pairs = parse_qsl(self.query_string, keep_blank_values=True,
                              encoding=DEFAULT_CHARSET, errors="replace")
            if is_www_form(self.content_type):
                pairs += parse_qsl(self.body_as_string, keep_blank_values=True,
                                   encoding=self._charset, errors="replace")
            elif self._parts:
                pairs += [(part.name, part.value) for part in self._parts if part.value is not None]
            for name, value in pairs:
                parameters.setdefault(name, []).append(value)
            self._parameters = parameters
        return self._parameters

    def get_parameter(self, name: str) -> Optional[str]:
        values = self.parameters.get(name)
        return values[0] if values else None

    def get_parameter_values(self, name: str) -> Optional[List[str]]:
        return self.parameters.get(name)

    async def parts(self) -> List[Part]:
        """Parse the multipart body; empty for any other content type."""
        if self._parts is None:
            if not is_multipart(self.content_type):
                self._parts = []
            else:
                self._parts = await self._parse_parts()
                self._parameters = None
        return self._parts

    async def _parse_parts(self) -> List[Part]:
        form = await Request(self.scope, replay_receive(self._body)).form()
        try:
            parts = []
            for name, value in form.multi_items():
                if isinstance(value, UploadFile):
                    parts.append(Part(
                        name=name,
                        filename=value.filename,
                        content_type=value.content_type,
                        content_disposition=value.headers.get("content-disposition"),
                    ))
                else:
                    parts.append(Part(
                        name=name,
                        filename=None,
                        content_type=None,
                        content_disposition=f'form-data; name="{name}"',
                        value=value,
                    ))
            return parts
        finally:
            await form.close()

    def get_input_stream(self) -> BufferedInputStream:
        return BufferedInputStream(self._body)

    def get_reader(self) -> io.TextIOWrapper:
        return io.TextIOWrapper(BufferedInputStream(self._body), encoding=self._charset, errors="replace")

    def receive(self) -> Receive:
        """A fresh receive channel replaying the buffered body."""
        return replay_receive(self._body, self._parent)
