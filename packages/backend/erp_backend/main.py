from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from erp_backend.api.health import quick_test_router
from erp_backend.api.router import router as api_router
from erp_backend.cache.decorators import CacheInterceptor
from erp_backend.cache.factory import create_cache_manager
from erp_backend.config import Settings, get_settings
from erp_backend.workflow.mapper import ApproveHistoryGatewayMapper, EndNodeMapper, StartNodeMapper
from erp_backend.workflow.models import CACHEABLE_TYPES
from erp_backend.workflow.service import WorkflowNodeService


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    cache_manager = getattr(app.state, "cache_manager", None) or create_cache_manager(
        settings, CACHEABLE_TYPES
    )
    caching = CacheInterceptor(cache_manager)
    start_nodes = StartNodeMapper()
    end_nodes = EndNodeMapper()

    app.state.cache_manager = cache_manager
    app.state.caching = caching
    app.state.start_node_mapper = start_nodes
    app.state.end_node_mapper = end_nodes
    app.state.approve_history_gateway_mapper = ApproveHistoryGatewayMapper()
    app.state.workflow_service = WorkflowNodeService(caching, start_nodes, end_nodes)
    yield


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="ERP Backend", lifespan=lifespan)
    app.state.settings = settings
    allow_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(quick_test_router, prefix="/quick/test", tags=["quick-test"])
    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
