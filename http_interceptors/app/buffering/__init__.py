"""
Buffering package for the interceptors.

Wraps the ASGI receive/send channels so request and response bodies can be
consumed more than once (for logging, parameter rewriting and the handler).
"""

from .request import BufferedRequest, Part
from .response import BufferedResponse
from .streams import BufferedInputStream, read_body, replay_receive

__all__ = [
    "BufferedRequest",
    "BufferedResponse",
    "BufferedInputStream",
    "Part",
    "read_body",
    "replay_receive",
]
