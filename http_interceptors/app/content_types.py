"""
Content-Type and Content-Disposition helpers shared by the interceptors.
"""

import codecs
from typing import Any, Optional

MULTIPART_PREFIX = "multipart/"
WWW_FORM = "application/x-www-form-urlencoded"

_TEXTUAL_SUBTYPES = {
    "json",
    "xml",
    "javascript",
    "x-javascript",
    "ecmascript",
    "x-www-form-urlencoded",
    "yaml",
    "x-yaml",
    "csv",
    "graphql",
}


def _starts_with_ignore_case(value: Optional[str], prefix: str) -> bool:
    return value is not None and value.lower().startswith(prefix)


def is_multipart(content_type: Optional[str]) -> bool:
    """Whether the content type is a multipart body."""
    return _starts_with_ignore_case(content_type, MULTIPART_PREFIX)


def is_www_form(content_type: Optional[str]) -> bool:
    """Whether the content type is an URL-encoded form body."""
    return _starts_with_ignore_case(content_type, WWW_FORM)


def media_type(content_type: Optional[str]) -> Optional[str]:
    """The bare, lower-cased media type without parameters."""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


def get_charset(content_type: Optional[str]) -> Optional[str]:
    """The ``charset`` parameter of a content type, if any."""
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            value = value.strip().strip('"').strip("'")
            return value or None
    return None


def is_file_download(content_disposition: Optional[str]) -> bool:
    """Whether a Content-Disposition header marks the body as an attachment."""
    if not content_disposition:
        return False
    disposition_type = content_disposition.split(";", 1)[0].strip().lower()
    return disposition_type == "attachment"


def is_binary(content_type: Optional[str]) -> bool:
    """Whether a body of this content type should be treated as binary."""
    mime = media_type(content_type)
    if mime is None:
        return True
    main_type, _, subtype = mime.partition("/")
    if main_type == "text":
        return False
    if subtype.endswith("+json") or subtype.endswith("+xml"):
        return False
    return subtype not in _TEXTUAL_SUBTYPES


def resolve_charset(name: Optional[str], default: str, logger: Any) -> str:
    """Resolve a charset name, falling back to ``default`` when unusable."""
    if name is None:
        logger.warning(
            "No character encoding for the HTTP message, using the default charset",
            default_charset=default
        )
        return default
    try:
        return codecs.lookup(name).name
    except LookupError:
        logger.warning(
            "Illegal character encoding for the HTTP message, using the default charset",
            charset=name,
            default_charset=default
        )
        return default
