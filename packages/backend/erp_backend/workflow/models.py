from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class AuditFields(BaseModel):
    id: int | None = None
    tenant_id: int | None = None
    create_by: int | None = None
    create_time: datetime | None = None
    update_by: int | None = None
    update_time: datetime | None = None
    version_num: int | None = Field(None, description="optimistic lock version")


class ApproveGroupUserVO(AuditFields):
    """Member of an approval group."""

    group_id: int | None = None
    approver_num: str | None = Field(None, description="approver employee number")


class StartNodeEntity(AuditFields):
    process_id: int | None = None
    node_code: str | None = None
    node_name: str | None = None


class EndNodeEntity(AuditFields):
    process_id: int | None = None
    node_code: str | None = None
    node_name: str | None = None


class ApproveHistoryGatewayEntity(AuditFields):
    """Approval decision recorded at a gateway node."""

    process_id: int | None = None
    gateway_code: str | None = None
    approver_num: str | None = None
    approve_action: str | None = None
    approve_comment: str | None = None


CACHEABLE_TYPES: tuple[type[BaseModel], ...] = (
    ApproveGroupUserVO,
    StartNodeEntity,
    EndNodeEntity,
    ApproveHistoryGatewayEntity,
)
