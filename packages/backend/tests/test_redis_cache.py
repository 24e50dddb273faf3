"""Tests for cache/redis.py with a mocked Redis client."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from erp_backend.cache.manager import CacheManager
from erp_backend.cache.redis import RedisCache
from erp_backend.workflow.models import EndNodeEntity


def _store_backed_client() -> tuple[MagicMock, dict[str, str]]:
    storage: dict[str, str] = {}
    client = MagicMock()
    client.get = lambda k: storage.get(k)
    client.set = MagicMock(side_effect=lambda k, v, ex=None: storage.__setitem__(k, v))
    client.delete = lambda *keys: sum(1 for k in keys if storage.pop(k, None) is not None)
    client.scan_iter = lambda match, count: [k for k in list(storage) if k.startswith(match.rstrip("*"))]
    return client, storage


class TestRedisCache:
    def test_set_uses_expiry(self):
        client = MagicMock()
        RedisCache("redis://unused", client=client).set("k", "v", ttl_seconds=30)
        client.set.assert_called_once_with("k", "v", ex=30)

    def test_get_missing(self):
        client = MagicMock()
        client.get.return_value = None
        assert RedisCache("redis://unused", client=client).get("k") is None

    def test_delete_prefix(self):
        client, storage = _store_backed_client()
        storage.update({"workflow::a": "1", "workflow::b": "2", "other::a": "3"})
        removed = RedisCache("redis://unused", client=client).delete_prefix("workflow::")
        assert removed == 2
        assert storage == {"other::a": "3"}

    def test_delete_prefix_escapes_glob_characters(self):
        client = MagicMock()
        client.scan_iter.return_value = []
        RedisCache("redis://unused", client=client).delete_prefix("a*b::")
        client.scan_iter.assert_called_once_with(match="a\\*b::*", count=500)

    def test_client_returns_raw_bytes(self):
        with patch("redis.from_url") as from_url:
            RedisCache("redis://cache:6379/0")
        from_url.assert_called_once_with("redis://cache:6379/0", decode_responses=False)

    def test_ping(self):
        client = MagicMock()
        client.ping.return_value = True
        assert RedisCache("redis://unused", client=client).ping() is True


class TestRedisBackedManager:
    def test_round_trip_through_redis(self, serializer):
        client, storage = _store_backed_client()
        cache = CacheManager(RedisCache("redis://unused", client=client), serializer).get_cache("workflow")
        node = EndNodeEntity(id=2, node_code="END")
        cache.put("node2", node)
        client.set.assert_called_once()
        assert client.set.call_args.kwargs["ex"] == 30
        assert "workflow::node2" in storage
        assert cache.get("node2") == node

    def test_bytes_payload_round_trip(self, serializer):
        node = EndNodeEntity(id=3, node_name="结束")
        client = MagicMock()
        client.get.return_value = serializer.serialize(node).encode("utf-8")
        cache = CacheManager(RedisCache("redis://unused", client=client), serializer).get_cache("workflow")
        assert cache.get("node3") == node
        client.get.assert_called_once_with("workflow::node3")

    def test_undecodable_bytes_are_a_miss(self, serializer, caplog):
        client = MagicMock()
        client.get.return_value = b"\xff\xfe{not utf8"
        cache = CacheManager(RedisCache("redis://unused", client=client), serializer).get_cache("workflow")
        with caplog.at_level(logging.WARNING):
            assert cache.get("k") is None
        assert "not valid UTF-8" in caplog.text

    def test_connection_loss_is_a_miss(self, serializer, caplog):
        client = MagicMock()
        client.get.side_effect = RedisConnectionError("Connection refused")
        cache = CacheManager(RedisCache("redis://unused", client=client), serializer).get_cache("workflow")
        with caplog.at_level(logging.WARNING):
            assert cache.get("k") is None
        assert any(record.levelno == logging.WARNING for record in caplog.records)
