"""
Audit trail helpers

apply_changes() writes the submitted fields onto a record and returns the
FieldChange list of what actually changed; create_audit_log() stores it.
get_resource_history() and list_audit_history() read the rows back
behind the same role gates that guard the writes.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.permissions import Actor, ADMIN_ONLY, PARTNER_MANAGERS, WAREHOUSE_STAFF, authorize
from oms.models.audit_log import AuditLog
from oms.schemas.misc import FieldChange


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def apply_changes(record: Any, updates: Dict[str, Any]) -> List[FieldChange]:
    changes = []
    for field, new_value in updates.items():
        old_value = getattr(record, field)
        if old_value == new_value:
            continue
        setattr(record, field, new_value)
        changes.append(FieldChange(field=field, old=_jsonable(old_value), new=_jsonable(new_value)))
    return changes


def snapshot_changes(values: Dict[str, Any], removed: bool = False) -> List[FieldChange]:
    """Change list for a created (old=None) or deleted (new=None) record"""
    if removed:
        return [FieldChange(field=k, old=_jsonable(v), new=None) for k, v in values.items()]
    return [FieldChange(field=k, old=None, new=_jsonable(v)) for k, v in values.items()]


def create_audit_log(
    db: AsyncSession,
    actor: Actor,
    action: str,
    resource_type: str,
    resource_id: Optional[int] = None,
    resource_name: Optional[str] = None,
    changes: Optional[List[FieldChange]] = None) -> AuditLog:
    """Create an audit log row in the current transaction"""
    log = AuditLog(
        user_id=actor.id,
        user_name=actor.name,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource_name,
        changes=[c.model_dump() for c in (changes or [])],
    )
    db.add(log)
    return log


# ===== History =====

# readers per resource type; the unfiltered log is admin only
HISTORY_READERS = {
    "product": WAREHOUSE_STAFF,
    "customer": PARTNER_MANAGERS,
    "supplier": PARTNER_MANAGERS,
    "profile": ADMIN_ONLY,
}
HISTORY_LIMIT = 100


async def get_resource_history(
    db: AsyncSession,
    actor: Actor,
    resource_type: str,
    resource_id: int) -> List[AuditLog]:
    """Change history of one record, newest first"""
    authorize(actor, HISTORY_READERS[resource_type], f"view {resource_type} history")
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.resource_type == resource_type, AuditLog.resource_id == resource_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    )
    return list(result.scalars().all())


async def list_audit_history(
    db: AsyncSession,
    actor: Actor,
    resource_type: Optional[str] = None,
    limit: int = HISTORY_LIMIT) -> List[AuditLog]:
    """Latest audit rows, optionally of one resource type"""
    if resource_type:
        authorize(actor, HISTORY_READERS[resource_type], f"view {resource_type} history")
    else:
        authorize(actor, ADMIN_ONLY, "view the audit log")

    query = select(AuditLog)
    if resource_type:
        query = query.where(AuditLog.resource_type == resource_type)
    result = await db.execute(query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit))
    return list(result.scalars().all())
