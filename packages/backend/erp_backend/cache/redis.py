from __future__ import annotations

from erp_backend.cache.base import Cache

_SCAN_BATCH = 500


class RedisCache(Cache):
    name = "redis"

    def __init__(self, url: str, client=None) -> None:
        self._client = client if client is not None else _get_client(url)

    def get(self, key: str) -> bytes | None:
        # raw bytes; the serializer owns decoding
        return self._client.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._client.set(key, value, ex=ttl_seconds)

    def delete(self, key: str) -> None:
        self._client.delete(key)

    def delete_prefix(self, prefix: str) -> int:
        removed = 0
        batch: list[bytes] = []
        for key in self._client.scan_iter(match=f"{_escape_glob(prefix)}*", count=_SCAN_BATCH):
            batch.append(key)
            if len(batch) >= _SCAN_BATCH:
                removed += self._client.delete(*batch)
                batch = []
        if batch:
            removed += self._client.delete(*batch)
        return removed

    def ping(self) -> bool:
        return bool(self._client.ping())


def _escape_glob(value: str) -> str:
    for char in ("\\", "*", "?", "[", "]"):
        value = value.replace(char, "\\" + char)
    return value


def _get_client(url: str):
    try:
        import redis  # type: ignore
    except Exception as exc:
        raise RuntimeError("Redis cache selected but redis package is not installed") from exc
    return redis.from_url(url, decode_responses=False)
