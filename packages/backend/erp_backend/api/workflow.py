import anyio
from fastapi import APIRouter, HTTPException, Request

from erp_backend.workflow.models import EndNodeEntity, StartNodeEntity

router = APIRouter()


@router.get("/start-nodes/{node_id}", response_model=StartNodeEntity)
async def get_start_node(request: Request, node_id: int):
    service = request.app.state.workflow_service
    node = await anyio.to_thread.run_sync(service.get_start_node, node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="start node not found")
    return node


@router.get("/end-nodes/{node_id}", response_model=EndNodeEntity)
async def get_end_node(request: Request, node_id: int):
    service = request.app.state.workflow_service
    node = await anyio.to_thread.run_sync(service.get_end_node, node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="end node not found")
    return node
