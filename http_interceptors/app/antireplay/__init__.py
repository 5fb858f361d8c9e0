"""
Anti-replay package.

Provides a Redis-backed guard whose ``anti_replay`` decorator rejects a
duplicate request for the same handler, path and body while a short-lived
lock is held.
"""

from .guard import AntiReplayGuard, find_body_parameter, md5_base64
from .time_unit import TimeUnit

__all__ = [
    "AntiReplayGuard",
    "TimeUnit",
    "find_body_parameter",
    "md5_base64",
]
