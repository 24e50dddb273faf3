from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Mapping

from erp_backend.cache.base import Cache
from erp_backend.cache.error_handler import (
    ISOLATED_ERRORS,
    CacheErrorHandler,
    IgnoreExceptionCacheErrorHandler,
)
from erp_backend.cache.serialization import TypedJsonSerializer

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30


def _default_key_prefix(cache_name: str) -> str:
    return f"{cache_name}::"


@dataclass(frozen=True)
class RedisCacheConfiguration:
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    cache_null_values: bool = False
    key_prefix: Callable[[str], str] = field(default=_default_key_prefix)

    def entry_ttl(self, ttl_seconds: int) -> RedisCacheConfiguration:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        return replace(self, ttl_seconds=ttl_seconds)


class NamedCache:
    """Handle on one named cache; every backend call is error-isolated."""

    def __init__(
        self,
        name: str,
        backend: Cache,
        serializer: TypedJsonSerializer,
        config: RedisCacheConfiguration,
        error_handler: CacheErrorHandler,
    ) -> None:
        self.name = name
        self.config = config
        self._backend = backend
        self._serializer = serializer
        self._error_handler = error_handler
        self._prefix = config.key_prefix(name)

    def backend_key(self, key: str) -> str:
        return self._prefix + key

    def get(self, key: str) -> Any | None:
        try:
            payload = self._backend.get(self.backend_key(key))
            if payload is None:
                return None
            return self._serializer.deserialize(payload)
        except ISOLATED_ERRORS as exc:
            self._error_handler.handle_get_error(exc, self.name, key)
            return None

    def put(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        if value is None and not self.config.cache_null_values:
            logger.debug("skip caching null value: cache=%s key=%s", self.name, key)
            return
        ttl = ttl_seconds if ttl_seconds is not None else self.config.ttl_seconds
        try:
            payload = self._serializer.serialize(value)
            self._backend.set(self.backend_key(key), payload, ttl)
        except ISOLATED_ERRORS as exc:
            self._error_handler.handle_put_error(exc, self.name, key, value)

    def evict(self, key: str) -> None:
        try:
            self._backend.delete(self.backend_key(key))
        except ISOLATED_ERRORS as exc:
            self._error_handler.handle_evict_error(exc, self.name, key)

    def clear(self) -> None:
        try:
            removed = self._backend.delete_prefix(self._prefix)
            logger.debug("cleared cache %s: %d entries", self.name, removed)
        except ISOLATED_ERRORS as exc:
            self._error_handler.handle_clear_error(exc, self.name)


class CacheManager:
    def __init__(
        self,
        backend: Cache,
        serializer: TypedJsonSerializer,
        default_config: RedisCacheConfiguration | None = None,
        initial_configs: Mapping[str, RedisCacheConfiguration] | None = None,
        error_handler: CacheErrorHandler | None = None,
    ) -> None:
        self._backend = backend
        self._serializer = serializer
        self._default_config = default_config or RedisCacheConfiguration()
        self._initial_configs = dict(initial_configs or {})
        self._error_handler = error_handler or IgnoreExceptionCacheErrorHandler()
        self._caches: dict[str, NamedCache] = {}
        self._lock = threading.Lock()

    @property
    def backend(self) -> Cache:
        return self._backend

    @property
    def cache_names(self) -> list[str]:
        return sorted(self._caches)

    def get_cache(self, name: str) -> NamedCache:
        cache = self._caches.get(name)
        if cache is not None:
            return cache
        with self._lock:
            cache = self._caches.get(name)
            if cache is None:
                config = self._initial_configs.get(name, self._default_config)
                cache = NamedCache(name, self._backend, self._serializer, config, self._error_handler)
                self._caches[name] = cache
        return cache
