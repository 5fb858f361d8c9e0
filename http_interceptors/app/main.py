"""
Wiring of the interceptors into a FastAPI application.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.config import InterceptorSettings, get_settings
from shared.errors import InterceptorException
from shared.logging import configure_logging, get_logger
from .antireplay import AntiReplayGuard
from .context import RequestContextMiddleware
from .filters import CorsMiddleware, HttpLoggingMiddleware, ParameterNameConversionMiddleware
from .interceptors import ExecutionTimeMiddleware
from .text import CaseFormat

logger = get_logger("interceptors.main")


def register_exception_handlers(app: FastAPI) -> None:
    """Map interceptor errors to the standard error response."""

    @app.exception_handler(InterceptorException)
    async def interceptor_exception_handler(request: Request, exc: InterceptorException):
        logger.error(
            "Interceptor error",
            code=exc.code,
            message=exc.message,
            details=exc.details
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response().model_dump()
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "code": "INTERNAL_ERROR",
                "message": "Internal server error",
                "details": {}
            }
        )


def install_interceptors(app: FastAPI, settings: InterceptorSettings) -> None:
    """Install the interceptors enabled in ``settings``.

    Starlette wraps middleware in reverse order of registration, so the
    innermost one is added first. From the outside in: request context, HTTP
    logging, CORS, parameter name conversion, execution time.
    """
    if settings.execution_time_enabled:
        app.add_middleware(ExecutionTimeMiddleware, enabled=True)

    if settings.parameter_name_conversion_enabled:
        app.add_middleware(
            ParameterNameConversionMiddleware,
            naming_strategy=CaseFormat.parse(settings.parameter_naming_strategy),
            allow_non_converted_name=settings.parameter_allow_non_converted_name,
        )

    if settings.cors_enabled:
        app.add_middleware(
            CorsMiddleware,
            allow_origin=settings.cors_allow_origin,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
            allow_credentials=settings.cors_allow_credentials,
            max_age=settings.cors_max_age,
        )

    if settings.http_logging_enabled:
        app.add_middleware(
            HttpLoggingMiddleware,
            print_multipart_content=settings.http_logging_print_multipart_content,
            print_text_file_download_content=settings.http_logging_print_text_file_download_content,
            default_charset=settings.http_logging_default_charset,
        )

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)


def create_app(settings: Optional[InterceptorSettings] = None,
               anti_replay_guard: Optional[AntiReplayGuard] = None) -> FastAPI:
    """Create a FastAPI application with the interceptors installed."""
    settings = settings or get_settings()
    configure_logging(settings.service_name, settings.log_level)
    guard = anti_replay_guard or AntiReplayGuard(settings.effective_anti_replay_redis_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Interceptors installed", env=settings.env)
        yield
        await guard.stop()

    app = FastAPI(
        title=f"{settings.service_name.title()} Service",
        version="1.0.0",
        docs_url="/docs" if settings.env == "local" else None,
        redoc_url="/redoc" if settings.env == "local" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.anti_replay_guard = guard
    install_interceptors(app, settings)
    return app
