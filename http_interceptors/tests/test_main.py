"""
Tests for wiring the interceptors into an application.
"""

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from http_interceptors.app.antireplay import AntiReplayGuard
from http_interceptors.app.context import REQUEST_ID_HEADER, RequestContextMiddleware
from http_interceptors.app.filters import CorsMiddleware, HttpLoggingMiddleware, ParameterNameConversionMiddleware
from http_interceptors.app.interceptors import ExecutionTimeMiddleware
from http_interceptors.app.main import create_app, install_interceptors
from shared.config import InterceptorSettings
from shared.errors import ConfigurationError, OperationTooFrequentError
from shared.test_helpers import USER_ID, USERNAME, create_testbed_router


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestInstallInterceptors:
    """Test cases for install_interceptors."""

    def test_middleware_order(self, settings):
        """Test the order from the outermost middleware inwards."""
        app = FastAPI()
        install_interceptors(app, settings)

        assert [middleware.cls for middleware in app.user_middleware] == [
            RequestContextMiddleware,
            HttpLoggingMiddleware,
            CorsMiddleware,
            ParameterNameConversionMiddleware,
            ExecutionTimeMiddleware,
        ]

    def test_disabled_interceptors_are_skipped(self):
        settings = InterceptorSettings(_env_file=None, cors_enabled=False, http_logging_enabled=False)
        app = FastAPI()
        install_interceptors(app, settings)

        assert [middleware.cls for middleware in app.user_middleware] == [RequestContextMiddleware]

    def test_unknown_naming_strategy(self):
        settings = InterceptorSettings(
            _env_file=None,
            parameter_name_conversion_enabled=True,
            parameter_naming_strategy="kebab"
        )

        with pytest.raises(ConfigurationError):
            install_interceptors(FastAPI(), settings)


class TestCreateApp:
    """Test cases for the application factory."""

    @pytest.fixture
    def guard(self, mock_redis):
        return AntiReplayGuard(redis_client=mock_redis)

    @pytest.fixture
    def app(self, settings, guard):
        app = create_app(settings, anti_replay_guard=guard)
        app.include_router(create_testbed_router())

        @app.get("/too-frequent")
        async def too_frequent():
            raise OperationTooFrequentError("REQUEST")

        @app.get("/boom")
        async def boom():
            raise RuntimeError("boom")

        return app

    @pytest.fixture
    def client(self, app):
        return TestClient(app, raise_server_exceptions=False)

    def test_guard_on_app_state(self, app, guard):
        assert app.state.anti_replay_guard is guard

    def test_guard_from_settings(self, settings):
        app = create_app(settings)

        assert app.state.anti_replay_guard.redis_url == "redis://localhost:6379/15"

    def test_request_through_every_interceptor(self, client):
        """Test a converted form login with CORS and request ID headers."""
        response = client.post("/login-with-form", data={"username": USERNAME, "password": "hello-world"})

        assert response.status_code == 200
        assert response.json() == {"id": USER_ID, "username": USERNAME}
        assert response.headers["access-control-allow-origin"] == "*"
        assert REQUEST_ID_HEADER.lower() in response.headers

    def test_interceptor_exception_response(self, client):
        """Test the error response of an interceptor exception."""
        response = client.get("/too-frequent", headers={REQUEST_ID_HEADER: "req-7"})

        assert response.status_code == 429
        assert response.json() == {
            "request_id": "req-7",
            "code": "OPERATION_TOO_FREQUENT",
            "message": "Operation too frequent: REQUEST",
            "details": {"operation": "REQUEST"},
        }

    def test_unhandled_exception_response(self, client):
        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"
        # Rendered outside of the user middleware
        assert REQUEST_ID_HEADER.lower() not in response.headers
        assert "access-control-allow-origin" not in response.headers

    def test_guard_is_stopped_on_shutdown(self, app, mock_redis):
        with TestClient(app):
            pass

        mock_redis.aclose.assert_called_once()
