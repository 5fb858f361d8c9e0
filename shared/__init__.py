"""
Shared utilities for the HTTP interceptors.

This package aggregates common building blocks consumed by every interceptor:

- config: Interceptor configuration via pydantic-settings
- logging: Structured logging with request correlation
- errors: Canonical error types and responses
- test_helpers: Testbed application used by the test suites

Any cross-cutting logic should live here to avoid import cycles. Do not
import from http_interceptors into shared/.
"""
