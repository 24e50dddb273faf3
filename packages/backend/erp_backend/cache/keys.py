from __future__ import annotations

import types
from typing import Any, Callable, Protocol

from erp_backend.cache.errors import CacheKeyError


class KeyGenerator(Protocol):
    def generate(self, target: Any, method: Callable[..., Any] | str, *params: Any) -> str:
        ...


# No separator between parts: (42, "abc") and (4, "2abc") yield the same key.
class SimpleKeyGenerator(KeyGenerator):
    def generate(self, target: Any, method: Callable[..., Any] | str, *params: Any) -> str:
        parts = [declaring_name(target), operation_name(method)]
        for index, param in enumerate(params):
            if param is None:
                raise CacheKeyError(
                    f"argument {index} of {parts[0]}.{parts[1]} is None; cannot build a cache key"
                )
            parts.append(str(param))
        return "".join(parts)


def declaring_name(target: Any) -> str:
    if isinstance(target, str):
        return target
    if isinstance(target, types.ModuleType):
        return target.__name__
    cls = target if isinstance(target, type) else type(target)
    return f"{cls.__module__}.{cls.__qualname__}"


def operation_name(method: Callable[..., Any] | str) -> str:
    if isinstance(method, str):
        return method
    return method.__name__
