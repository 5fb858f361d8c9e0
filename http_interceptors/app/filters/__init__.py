"""
Request filters for the interceptors.

Each filter is an ASGI middleware with a single concern:
- cors: CORS response headers
- http_logging: full request/response logging over buffered bodies
- parameter_names: request parameter name case conversion
"""

from .cors import CorsMiddleware
from .http_logging import HttpLoggingMiddleware
from .parameter_names import ParameterNameConversionMiddleware

__all__ = [
    "CorsMiddleware",
    "HttpLoggingMiddleware",
    "ParameterNameConversionMiddleware",
]
