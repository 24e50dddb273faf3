from __future__ import annotations

import functools
import inspect
from typing import Any, Callable

import anyio

from erp_backend.cache.errors import CacheKeyError
from erp_backend.cache.keys import KeyGenerator, SimpleKeyGenerator
from erp_backend.cache.manager import CacheManager

_TARGET_NAMES = {"self", "cls"}


class _KeyResolver:
    def __init__(
        self,
        func: Callable[..., Any],
        key_generator: KeyGenerator,
        key: Callable[..., Any] | None,
    ) -> None:
        self._func = func
        self._key_generator = key_generator
        self._key = key
        self._signature = inspect.signature(func)
        params = list(self._signature.parameters)
        self._bound_target = func.__self__ if inspect.ismethod(func) else None
        self._has_target = bool(params) and params[0] in _TARGET_NAMES

    def __call__(self, args: tuple, kwargs: dict) -> str:
        if self._key is not None:
            custom = self._key(*args, **kwargs)
            if custom is None:
                raise CacheKeyError(f"key function for {self._func.__name__} returned None")
            return str(custom)
        bound = self._signature.bind(*args, **kwargs)
        bound.apply_defaults()
        values: list[Any] = []
        for name, value in bound.arguments.items():
            kind = self._signature.parameters[name].kind
            if kind is inspect.Parameter.VAR_POSITIONAL:
                values.extend(value)
            elif kind is inspect.Parameter.VAR_KEYWORD:
                values.extend(value.values())
            else:
                values.append(value)
        if self._bound_target is not None:
            target, params = self._bound_target, values
        elif self._has_target:
            target, params = values[0], values[1:]
        else:
            target, params = self._func.__module__, values
        return self._key_generator.generate(target, self._func, *params)


def _should_store(result: Any, unless: Callable[[Any], bool] | None) -> bool:
    if result is None:
        return False
    return unless is None or not unless(result)


class CacheInterceptor:
    def __init__(self, manager: CacheManager, key_generator: KeyGenerator | None = None) -> None:
        self._manager = manager
        self._key_generator = key_generator or SimpleKeyGenerator()

    @property
    def manager(self) -> CacheManager:
        return self._manager

    def key_for(self, target: Any, method: Callable[..., Any] | str, *params: Any) -> str:
        return self._key_generator.generate(target, method, *params)

    def cacheable(
        self,
        cache_name: str,
        key: Callable[..., Any] | None = None,
        unless: Callable[[Any], bool] | None = None,
    ):
        """Return the cached result when present, otherwise call and cache it."""

        def decorator(func):
            resolve = _KeyResolver(func, self._key_generator, key)

            if inspect.iscoroutinefunction(func):

                @functools.wraps(func)
                async def async_wrapper(*args, **kwargs):
                    cache = self._manager.get_cache(cache_name)
                    cache_key = resolve(args, kwargs)
                    cached = await anyio.to_thread.run_sync(cache.get, cache_key)
                    if cached is not None:
                        return cached
                    result = await func(*args, **kwargs)
                    if _should_store(result, unless):
                        await anyio.to_thread.run_sync(cache.put, cache_key, result)
                    return result

                return async_wrapper

            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                cache = self._manager.get_cache(cache_name)
                cache_key = resolve(args, kwargs)
                cached = cache.get(cache_key)
                if cached is not None:
                    return cached
                result = func(*args, **kwargs)
                if _should_store(result, unless):
                    cache.put(cache_key, result)
                return result

            return wrapper

        return decorator

    def cache_put(
        self,
        cache_name: str,
        key: Callable[..., Any] | None = None,
        unless: Callable[[Any], bool] | None = None,
    ):
        """Always call, then store the result."""

        def decorator(func):
            resolve = _KeyResolver(func, self._key_generator, key)

            if inspect.iscoroutinefunction(func):

                @functools.wraps(func)
                async def async_wrapper(*args, **kwargs):
                    cache_key = resolve(args, kwargs)
                    result = await func(*args, **kwargs)
                    if _should_store(result, unless):
                        cache = self._manager.get_cache(cache_name)
                        await anyio.to_thread.run_sync(cache.put, cache_key, result)
                    return result

                return async_wrapper

            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                cache_key = resolve(args, kwargs)
                result = func(*args, **kwargs)
                if _should_store(result, unless):
                    self._manager.get_cache(cache_name).put(cache_key, result)
                return result

            return wrapper

        return decorator

    def cache_evict(
        self,
        cache_name: str,
        key: Callable[..., Any] | None = None,
        all_entries: bool = False,
        before_invocation: bool = False,
    ):
        """Evict one entry (or the whole cache) around a call.

        By default the eviction happens after the call returns; a call that
        raises leaves the cache untouched.
        """

        def decorator(func):
            resolve = _KeyResolver(func, self._key_generator, key)

            def evict(args, kwargs) -> None:
                cache = self._manager.get_cache(cache_name)
                if all_entries:
                    cache.clear()
                else:
                    cache.evict(resolve(args, kwargs))

            if inspect.iscoroutinefunction(func):

                @functools.wraps(func)
                async def async_wrapper(*args, **kwargs):
                    if before_invocation:
                        await anyio.to_thread.run_sync(evict, args, kwargs)
                    result = await func(*args, **kwargs)
                    if not before_invocation:
                        await anyio.to_thread.run_sync(evict, args, kwargs)
                    return result

                return async_wrapper

            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                if before_invocation:
                    evict(args, kwargs)
                result = func(*args, **kwargs)
                if not before_invocation:
                    evict(args, kwargs)
                return result

            return wrapper

        return decorator
