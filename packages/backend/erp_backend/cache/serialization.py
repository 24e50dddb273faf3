from __future__ import annotations

import json
import uuid
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Callable, Iterable

from pydantic import BaseModel, ValidationError

from erp_backend.cache.errors import SerializationError, UntrustedTypeError

DISCRIMINATOR = "@class"

_DICT_TAG = "builtins.dict"

# Standard-library value types, written as text and always accepted.
_VALUE_TYPES: dict[type, tuple[str, Callable[[Any], str], Callable[[str], Any]]] = {
    datetime: ("datetime.datetime", datetime.isoformat, datetime.fromisoformat),
    date: ("datetime.date", date.isoformat, date.fromisoformat),
    time: ("datetime.time", time.isoformat, time.fromisoformat),
    Decimal: ("decimal.Decimal", str, Decimal),
    uuid.UUID: ("uuid.UUID", str, uuid.UUID),
}
_VALUE_TAGS = {tag: decode for tag, _, decode in _VALUE_TYPES.values()}


def qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


class TypeRegistry:
    """Immutable allow-list of model types that may appear in cache payloads."""

    def __init__(
        self,
        trusted_packages: Iterable[str],
        types: Iterable[type[BaseModel]] = (),
    ) -> None:
        self._trusted_packages = tuple(pkg.strip() for pkg in trusted_packages if pkg.strip())
        entries: dict[str, type[BaseModel]] = {}
        for cls in types:
            name = qualified_name(cls)
            if not (isinstance(cls, type) and issubclass(cls, BaseModel)):
                raise TypeError(f"only pydantic models can be registered: {name}")
            if not self._is_trusted(cls.__module__):
                raise UntrustedTypeError(name)
            entries[name] = cls
        self._types = MappingProxyType(entries)

    @property
    def trusted_packages(self) -> tuple[str, ...]:
        return self._trusted_packages

    def extend(self, *types: type[BaseModel]) -> TypeRegistry:
        return TypeRegistry(self._trusted_packages, [*self._types.values(), *types])

    def discriminator_for(self, cls: type) -> str | None:
        name = qualified_name(cls)
        if self._types.get(name) is cls:
            return name
        return None

    def resolve(self, discriminator: str) -> type[BaseModel]:
        cls = self._types.get(discriminator)
        if cls is None:
            raise UntrustedTypeError(discriminator)
        return cls

    def __contains__(self, discriminator: object) -> bool:
        return discriminator in self._types

    def __len__(self) -> int:
        return len(self._types)

    def _is_trusted(self, module: str) -> bool:
        return any(module == pkg or module.startswith(pkg + ".") for pkg in self._trusted_packages)


class TypedJsonSerializer:
    def __init__(self, registry: TypeRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def serialize(self, value: Any) -> str:
        return json.dumps(self._encode(value), ensure_ascii=False, separators=(",", ":"))

    def deserialize(self, payload: str | bytes) -> Any:
        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            raw = json.loads(payload)
        except UnicodeDecodeError as exc:
            raise SerializationError("cache payload is not valid UTF-8") from exc
        except ValueError as exc:
            raise SerializationError("cache payload is not valid JSON") from exc
        return self._decode(raw)

    def _encode(self, value: Any) -> Any:
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, (list, tuple)):
            return [self._encode(item) for item in value]
        if isinstance(value, dict):
            entries = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise SerializationError(f"dict keys must be str, got {type(key).__name__}")
                entries[key] = self._encode(item)
            return {DISCRIMINATOR: _DICT_TAG, "entries": entries}
        codec = _VALUE_TYPES.get(type(value))
        if codec is not None:
            tag, encode, _ = codec
            return {DISCRIMINATOR: tag, "value": encode(value)}
        if isinstance(value, BaseModel):
            discriminator = self._registry.discriminator_for(type(value))
            if discriminator is None:
                raise SerializationError(f"type is not registered for caching: {qualified_name(type(value))}")
            return {DISCRIMINATOR: discriminator, **value.model_dump(mode="json")}
        raise SerializationError(f"unsupported cache value type: {qualified_name(type(value))}")

    def _decode(self, raw: Any) -> Any:
        if isinstance(raw, list):
            return [self._decode(item) for item in raw]
        if not isinstance(raw, dict):
            return raw
        discriminator = raw.get(DISCRIMINATOR)
        if not isinstance(discriminator, str):
            raise SerializationError("cache payload object has no type discriminator")
        if discriminator == _DICT_TAG:
            entries = raw.get("entries")
            if not isinstance(entries, dict):
                raise SerializationError("malformed dict payload")
            return {key: self._decode(item) for key, item in entries.items()}
        if discriminator in _VALUE_TAGS:
            text = raw.get("value")
            if not isinstance(text, str):
                raise SerializationError(f"malformed {discriminator} payload")
            try:
                return _VALUE_TAGS[discriminator](text)
            except (ValueError, InvalidOperation) as exc:
                raise SerializationError(f"malformed {discriminator} payload") from exc
        cls = self._registry.resolve(discriminator)
        fields = {key: item for key, item in raw.items() if key != DISCRIMINATOR}
        try:
            return cls.model_validate(fields)
        except ValidationError as exc:
            raise SerializationError(f"payload does not match {discriminator}") from exc
