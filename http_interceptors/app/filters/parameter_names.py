"""
Request parameter name conversion middleware.
"""

from typing import Dict, List, Tuple
from urllib.parse import parse_qsl, urlencode

from starlette.types import ASGIApp, Receive, Scope, Send

from shared.logging import get_logger
from ..buffering import read_body, replay_receive
from ..buffering.request import DEFAULT_CHARSET
from ..content_types import get_charset, is_www_form, resolve_charset
from ..text.case_format import CaseFormat


class ParameterNameConversionMiddleware:
    """Rewrites request parameter names into lower camel case.

    Names are converted from ``naming_strategy`` to ``CaseFormat.LOWER_CAMEL``,
    so a handler written against ``userName`` accepts ``user_name`` from the
    client. With ``allow_non_converted_name`` the original names stay
    available as well. Both the query string and URL-encoded form bodies are
    rewritten.

    Names are converted after percent-decoding: the query string as UTF-8, a
    form body with the charset of its Content-Type (UTF-8 by default).
    """

    def __init__(
        self,
        app: ASGIApp,
        naming_strategy: CaseFormat = CaseFormat.LOWER_UNDERSCORE,
        allow_non_converted_name: bool = True,
    ):
        self.app = app
        self.naming_strategy = naming_strategy
        self.allow_non_converted_name = allow_non_converted_name
        self.logger = get_logger("interceptors.parameter_names")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope = dict(scope)
        query_string = scope.get("query_string", b"").decode("latin-1")
        scope["query_string"] = self.convert_query(query_string).encode("latin-1")

        content_type = self._header(scope, b"content-type")
        if is_www_form(content_type):
            charset = self._get_charset(content_type)
            body = await read_body(receive)
            body = self.convert_query(body.decode(charset, errors="replace"), charset).encode("latin-1")
            scope["headers"] = self._replace_content_length(scope.get("headers", []), len(body))
            receive = replay_receive(body, receive)

        await self.app(scope, receive, send)

    def convert_names(self, pairs: List[Tuple[str, str]]) -> Dict[str, List[str]]:
        """Group parameter values under their converted (and original) names.

        Values landing on the same name are merged in request order.
        """
        parameters: Dict[str, List[str]] = {}
        for name, value in pairs:
            converted_name = self.naming_strategy.to(CaseFormat.LOWER_CAMEL, name)
            parameters.setdefault(converted_name, []).append(value)
            if self.allow_non_converted_name and converted_name != name:
                parameters.setdefault(name, []).append(value)
            self.logger.debug("Convert parameter name", name=name, converted_name=converted_name)
        return parameters

    def convert_query(self, query_string: str, charset: str = DEFAULT_CHARSET) -> str:
        if not query_string:
            return query_string
        pairs = parse_qsl(query_string, keep_blank_values=True, encoding=charset, errors="replace")
        return urlencode(self.convert_names(pairs), doseq=True, encoding=charset, errors="replace")

    def _get_charset(self, content_type: str) -> str:
        charset = get_charset(content_type)
        if charset is None:
            return DEFAULT_CHARSET
        return resolve_charset(charset, DEFAULT_CHARSET, self.logger)

    @staticmethod
    def _header(scope: Scope, name: bytes):
        for key, value in scope.get("headers", []):
            if key.lower() == name:
                return value.decode("latin-1")
        return None

    @staticmethod
    def _replace_content_length(headers, length: int):
        result = [(key, value) for key, value in headers if key.lower() != b"content-length"]
        result.append((b"content-length", str(length).encode("latin-1")))
        return result
