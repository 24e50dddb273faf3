from fastapi import APIRouter

from erp_backend.api import health, workflow

router = APIRouter()
router.include_router(workflow.router, prefix="/workflow", tags=["workflow"])
router.include_router(health.router, tags=["health"])
