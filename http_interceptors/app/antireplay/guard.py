"""
Anti-replay guard backed by Redis.

The guard fingerprints a request (handler identity, HTTP method, path and an
MD5 of the JSON request body) and claims the fingerprint in Redis with
``SET NX PX``. Only the first request inside the expiry window is executed;
duplicates are rejected with ``OperationTooFrequentError``.
"""

import asyncio
import base64
import functools
import hashlib
import inspect
import json
import math
import time
import types
from typing import Annotated, Any, Callable, Optional, Union, get_args, get_origin, get_type_hints

import redis.asyncio as redis
from fastapi import params
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request

from shared.errors import ConfigurationError, ExternalServiceError, OperationTooFrequentError, ValidationError
from shared.logging import get_logger
from ..context import current_request
from .time_unit import TimeUnit

LOCK_VALUE = "1"
REPLAYED_OPERATION = "REQUEST"


def md5_base64(content: str) -> str:
    """MD5 digest of the UTF-8 encoded content, Base64 encoded."""
    digest = hashlib.md5(content.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def owner_name(clazz: Union[type, str, None]) -> Optional[str]:
    if clazz is None or isinstance(clazz, str):
        return clazz
    return f"{clazz.__module__}.{clazz.__qualname__}"


def _is_body_marker(value: Any) -> bool:
    # Form and File are Body subclasses but never carry a JSON body
    return isinstance(value, params.Body) and not isinstance(value, params.Form)


def _is_body_annotation(annotation: Any) -> bool:
    if annotation is None:
        return False
    origin = get_origin(annotation)
    if origin is Annotated:
        base, *metadata = get_args(annotation)
        if any(_is_body_marker(item) for item in metadata):
            return True
        return _is_body_annotation(base)
    if origin in (Union, types.UnionType):
        return any(_is_body_annotation(arg) for arg in get_args(annotation) if arg is not type(None))
    return inspect.isclass(annotation) and issubclass(annotation, BaseModel)


def find_body_parameter(func: Callable, body_param: Optional[str] = None) -> Optional[str]:
    """Name of the parameter carrying the request body, if any.

    An explicit ``body_param`` wins; otherwise the last parameter declared
    with ``Body()`` or annotated with a pydantic model is used.
    """
    signature = inspect.signature(func)
    if body_param is not None:
        if body_param not in signature.parameters:
            raise ValidationError(
                f"Unknown body parameter: {body_param}",
                details={"function": func.__qualname__}
            )
        return body_param

    hints = get_type_hints(func, include_extras=True)
    found = None
    for name, parameter in signature.parameters.items():
        if _is_body_marker(parameter.default) or _is_body_annotation(hints.get(name)):
            found = name
    return found


class AntiReplayGuard:
    """One-shot distributed lock keyed by request fingerprint."""

    def __init__(self, redis_url: Optional[str] = None, redis_client: Optional[redis.Redis] = None):
        if redis_url is None and redis_client is None:
            raise ConfigurationError("Either redis_url or redis_client is required")
        self.redis_url = redis_url
        self.logger = get_logger("interceptors.anti_replay")
        self._redis: Optional[redis.Redis] = redis_client

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
        return self._redis

    async def start(self):
        """Check that Redis is reachable."""
        try:
            client = await self._get_redis()
            await client.ping()
            self.logger.info("Anti-replay guard started")
        except Exception as e:
            self.logger.error("Failed to start anti-replay guard", error=str(e))
            raise ExternalServiceError("redis", str(e))

    async def stop(self):
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Anti-replay guard stopped")

    @staticmethod
    def serialize_body(body: Any) -> str:
        return json.dumps(jsonable_encoder(body), separators=(",", ":"), ensure_ascii=False)

    def build_lock_key(self, clazz: str, method_name: str, http_method: str, path: str,
                       body: Any = None) -> str:
        """Build the lock key for a handler invocation."""
        key = f"{clazz}:{method_name}:{http_method}{path.replace('/', ':')}"
        if body is not None:
            key += ":" + md5_base64(self.serialize_body(body))
        return key

    @staticmethod
    def expire_millis(expire_time: float, time_unit: TimeUnit) -> int:
        return max(1, math.ceil(time_unit.to_millis(expire_time)))

    async def try_lock(self, key: str, expire_time: float, time_unit: TimeUnit = TimeUnit.SECONDS) -> bool:
        """Claim ``key`` unless it is already held.

        Cache failures are logged and treated as a successful claim so that an
        unavailable Redis never blocks requests.
        """
        try:
            redis_client = await self._get_redis()
            result = await redis_client.set(
                key,
                LOCK_VALUE,
                nx=True,
                px=self.expire_millis(expire_time, time_unit)
            )
            return bool(result)
        except Exception as e:
            self.logger.error("Set redis lock error", key=key, error=str(e))
            return True

    def anti_replay(self, expire_time: float, time_unit: TimeUnit = TimeUnit.SECONDS,
                    clazz: Union[type, str, None] = None, body_param: Optional[str] = None):
        """Decorate an endpoint so duplicates within the window are rejected."""
        if expire_time <= 0:
            raise ValidationError(
                "expire_time must be positive",
                details={"expire_time": expire_time}
            )

        def decorator(func: Callable) -> Callable:
            signature = inspect.signature(func)
            body_name = find_body_parameter(func, body_param)
            owner = owner_name(clazz) or func.__module__
            is_coroutine = asyncio.iscoroutinefunction(func)

            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                start_time = time.monotonic()
                request = self._resolve_request(args, kwargs)
                body = None
                if body_name is not None:
                    body = signature.bind_partial(*args, **kwargs).arguments.get(body_name)

                key = self.build_lock_key(owner, func.__name__, request.method, request.url.path, body)
                self.logger.info("Anti-replay lock key", key=key)

                locked = await self.try_lock(key, expire_time, time_unit)
                elapsed_ms = round((time.monotonic() - start_time) * 1000, 2)
                if not locked:
                    self.logger.info(
                        "Failed to acquire anti-replay lock, rejecting duplicate request",
                        key=key,
                        elapsed_ms=elapsed_ms
                    )
                    raise OperationTooFrequentError(REPLAYED_OPERATION)

                self.logger.info("Acquired anti-replay lock", key=key, elapsed_ms=elapsed_ms)
                if is_coroutine:
                    return await func(*args, **kwargs)
                return await run_in_threadpool(func, *args, **kwargs)

            return wrapper

        return decorator

    @staticmethod
    def _resolve_request(args, kwargs) -> Request:
        for value in list(args) + list(kwargs.values()):
            if isinstance(value, Request):
                return value
        request = current_request()
        if request is None:
            raise ConfigurationError(
                "No request bound to the current context; "
                "install RequestContextMiddleware or accept a Request argument"
            )
        return request
