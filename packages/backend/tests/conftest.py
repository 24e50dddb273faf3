from __future__ import annotations

import pytest

from erp_backend.cache.decorators import CacheInterceptor
from erp_backend.cache.manager import CacheManager, RedisCacheConfiguration
from erp_backend.cache.memory import MemoryCache
from erp_backend.cache.serialization import TypedJsonSerializer, TypeRegistry
from erp_backend.workflow.models import CACHEABLE_TYPES


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry() -> TypeRegistry:
    return TypeRegistry(["erp_backend.workflow"], CACHEABLE_TYPES)


@pytest.fixture
def serializer(registry: TypeRegistry) -> TypedJsonSerializer:
    return TypedJsonSerializer(registry)


@pytest.fixture
def memory_backend(clock: FakeClock) -> MemoryCache:
    return MemoryCache(clock=clock)


@pytest.fixture
def manager(memory_backend: MemoryCache, serializer: TypedJsonSerializer) -> CacheManager:
    return CacheManager(memory_backend, serializer, RedisCacheConfiguration())


@pytest.fixture
def caching(manager: CacheManager) -> CacheInterceptor:
    return CacheInterceptor(manager)
