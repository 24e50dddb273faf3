import logging
from datetime import datetime, timezone

import anyio
from fastapi import APIRouter, Request
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

router = APIRouter()
quick_test_router = APIRouter()


@quick_test_router.get("/info")
async def info() -> bool:
    return True


@router.get("/health")
async def health(request: Request):
    settings = request.app.state.settings
    cache_manager = request.app.state.cache_manager
    try:
        cache_ok = await anyio.to_thread.run_sync(cache_manager.backend.ping)
    except (RedisError, OSError):
        logger.warning("cache backend ping failed", exc_info=True)
        cache_ok = False
    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "cache_backend": settings.cache_backend,
        "cache_reachable": cache_ok,
        "caches": cache_manager.cache_names,
    }
