from __future__ import annotations

import logging
from typing import Any, Protocol

from redis.exceptions import RedisError

from erp_backend.cache.errors import CacheError

logger = logging.getLogger(__name__)

# Failures of the backend or of the payload codec. Anything else is a bug and propagates.
ISOLATED_ERRORS: tuple[type[BaseException], ...] = (RedisError, OSError, CacheError)


class CacheErrorHandler(Protocol):
    def handle_get_error(self, exc: Exception, cache: str, key: str) -> None:
        ...

    def handle_put_error(self, exc: Exception, cache: str, key: str, value: Any) -> None:
        ...

    def handle_evict_error(self, exc: Exception, cache: str, key: str) -> None:
        ...

    def handle_clear_error(self, exc: Exception, cache: str) -> None:
        ...


class IgnoreExceptionCacheErrorHandler(CacheErrorHandler):
    def handle_get_error(self, exc: Exception, cache: str, key: str) -> None:
        logger.warning("cache get failed, treating as miss: cache=%s key=%s", cache, key, exc_info=exc)

    def handle_put_error(self, exc: Exception, cache: str, key: str, value: Any) -> None:
        logger.warning("cache put failed, value not cached: cache=%s key=%s", cache, key, exc_info=exc)

    def handle_evict_error(self, exc: Exception, cache: str, key: str) -> None:
        logger.warning("cache evict failed: cache=%s key=%s", cache, key, exc_info=exc)

    def handle_clear_error(self, exc: Exception, cache: str) -> None:
        logger.warning("cache clear failed: cache=%s", cache, exc_info=exc)


class PropagatingCacheErrorHandler(CacheErrorHandler):
    def handle_get_error(self, exc: Exception, cache: str, key: str) -> None:
        raise exc

    def handle_put_error(self, exc: Exception, cache: str, key: str, value: Any) -> None:
        raise exc

    def handle_evict_error(self, exc: Exception, cache: str, key: str) -> None:
        raise exc

    def handle_clear_error(self, exc: Exception, cache: str) -> None:
        raise exc
