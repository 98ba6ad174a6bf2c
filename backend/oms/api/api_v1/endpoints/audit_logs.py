"""Audit history of products, partners and profiles"""

from typing import Any, List, Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.deps import get_db, get_current_actor
from oms.core.permissions import Actor
from oms.models.audit_log import AuditLog
from oms.schemas.misc import AuditLogResponse
from oms.services import audit as audit_service

router = APIRouter()

ResourceType = Literal["product", "customer", "supplier", "profile"]


def build_log_response(log: AuditLog) -> AuditLogResponse:
    return AuditLogResponse.model_validate(log)


@router.get("/", response_model=List[AuditLogResponse])
async def list_logs(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    resource_type: Optional[ResourceType] = Query(None),
    limit: int = Query(audit_service.HISTORY_LIMIT, ge=1, le=500)) -> Any:
    """Latest changes; without a resource type only admins may read it"""
    logs = await audit_service.list_audit_history(db, actor, resource_type=resource_type, limit=limit)
    return [build_log_response(log) for log in logs]


@router.get("/{resource_type}/{resource_id}", response_model=List[AuditLogResponse])
async def get_history(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    resource_type: ResourceType,
    resource_id: int) -> Any:
    logs = await audit_service.get_resource_history(db, actor, resource_type, resource_id)
    return [build_log_response(log) for log in logs]
