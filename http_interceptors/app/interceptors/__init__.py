"""
Handler interceptors: logic wrapped around the request handler itself.
"""

from .execution_time import ExecutionTimeMiddleware

__all__ = [
    "ExecutionTimeMiddleware",
]
