from __future__ import annotations

import logging
from typing import Iterable

from pydantic import BaseModel

from erp_backend.cache.base import Cache
from erp_backend.cache.error_handler import (
    CacheErrorHandler,
    IgnoreExceptionCacheErrorHandler,
    PropagatingCacheErrorHandler,
)
from erp_backend.cache.manager import CacheManager, RedisCacheConfiguration
from erp_backend.cache.memory import MemoryCache
from erp_backend.cache.redis import RedisCache
from erp_backend.cache.serialization import TypedJsonSerializer, TypeRegistry
from erp_backend.config import Settings

logger = logging.getLogger(__name__)


def create_cache_backend(settings: Settings) -> Cache:
    if settings.cache_backend == "redis":
        return RedisCache(settings.redis_url)
    if settings.cache_backend != "memory":
        logger.warning("unknown cache_backend %r, using memory", settings.cache_backend)
    return MemoryCache()


def create_cache_manager(
    settings: Settings,
    types: Iterable[type[BaseModel]] = (),
    backend: Cache | None = None,
) -> CacheManager:
    registry = TypeRegistry(_split(settings.cache_trusted_packages), types)
    default_config = RedisCacheConfiguration().entry_ttl(settings.cache_ttl_seconds)
    initial_configs = {
        name: default_config.entry_ttl(ttl)
        for name, ttl in _parse_ttl_overrides(settings.cache_ttl_overrides).items()
    }
    error_handler: CacheErrorHandler
    if settings.cache_ignore_errors:
        error_handler = IgnoreExceptionCacheErrorHandler()
    else:
        error_handler = PropagatingCacheErrorHandler()
    return CacheManager(
        backend if backend is not None else create_cache_backend(settings),
        TypedJsonSerializer(registry),
        default_config=default_config,
        initial_configs=initial_configs,
        error_handler=error_handler,
    )


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_ttl_overrides(value: str) -> dict[str, int]:
    overrides: dict[str, int] = {}
    for part in _split(value):
        name, sep, ttl = part.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"invalid cache_ttl_overrides entry: {part!r}")
        overrides[name.strip()] = int(ttl)
    return overrides
