from __future__ import annotations

from typing import Protocol


class Cache(Protocol):
    """Key-value backend holding serialized payloads with a per-entry TTL."""

    name: str

    def get(self, key: str) -> str | bytes | None:
        ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def delete_prefix(self, prefix: str) -> int:
        ...

    def ping(self) -> bool:
        ...
