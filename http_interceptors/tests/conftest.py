"""
Shared fixtures for the interceptor tests.
"""

from unittest.mock import AsyncMock

import pytest

from shared.config import InterceptorSettings
from shared.logging import clear_context


@pytest.fixture(autouse=True)
def reset_request_context():
    """Make sure no request ID leaks between tests."""
    clear_context()
    yield
    clear_context()


@pytest.fixture
def settings():
    """Settings with every optional interceptor switched on."""
    return InterceptorSettings(
        _env_file=None,
        execution_time_enabled=True,
        parameter_name_conversion_enabled=True,
        redis_url="redis://localhost:6379/15",
    )


@pytest.fixture
def mock_redis():
    """Redis client double whose SET NX succeeds."""
    client = AsyncMock()
    client.set.return_value = True
    client.ping.return_value = True
    return client
