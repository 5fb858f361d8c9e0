"""
Time units for anti-replay lock durations.
"""

from enum import Enum


class TimeUnit(Enum):
    """Duration units, valued by their length in milliseconds."""

    NANOSECONDS = 1e-6
    MICROSECONDS = 1e-3
    MILLISECONDS = 1
    SECONDS = 1000
    MINUTES = 60 * 1000
    HOURS = 60 * 60 * 1000
    DAYS = 24 * 60 * 60 * 1000

    def to_millis(self, duration: float) -> float:
        return duration * self.value
