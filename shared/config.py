"""
Shared configuration management for the HTTP interceptors.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class InterceptorSettings(BaseSettings):
    """Settings for every interceptor, read from INTERCEPTOR_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="INTERCEPTOR_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    service_name: str = Field(default="interceptors")

    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")

    # CORS
    cors_enabled: bool = Field(default=True)
    cors_allow_origin: str = Field(default="*")
    cors_allow_methods: str = Field(default="GET, HEAD, POST, PUT, DELETE, PATCH, OPTIONS")
    cors_allow_headers: str = Field(
        default="X-Auth-Token, X-Auth-App-Token, X-Auth-User-Token, Content-Type"
    )
    cors_allow_credentials: bool = Field(default=False)
    cors_max_age: int = Field(default=86400)

    # HTTP request/response logging
    http_logging_enabled: bool = Field(default=True)
    http_logging_print_multipart_content: bool = Field(default=False)
    http_logging_print_text_file_download_content: bool = Field(default=False)
    http_logging_default_charset: str = Field(default="utf-8")

    # Execution time logging
    execution_time_enabled: bool = Field(default=False)

    # Parameter name conversion
    parameter_name_conversion_enabled: bool = Field(default=False)
    parameter_naming_strategy: str = Field(default="LOWER_UNDERSCORE")
    parameter_allow_non_converted_name: bool = Field(default=True)

    # Anti-replay
    anti_replay_redis_url: Optional[str] = Field(default=None)

    @property
    def effective_anti_replay_redis_url(self) -> str:
        """Redis URL for anti-replay locks, defaulting to the shared one."""
        return self.anti_replay_redis_url or self.redis_url


def get_settings(**overrides) -> InterceptorSettings:
    """Get interceptor settings, with optional explicit overrides."""
    return InterceptorSettings(**overrides)
