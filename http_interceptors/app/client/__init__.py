"""
Client-side interceptors for outgoing HTTP calls made with httpx.
"""

from .logging_client import LoggingClientHooks, create_logging_client

__all__ = [
    "LoggingClientHooks",
    "create_logging_client",
]
