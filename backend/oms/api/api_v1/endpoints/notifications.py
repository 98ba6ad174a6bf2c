"""Notification API - list and unread count tolerate a principal without profile"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.deps import get_db, get_current_actor, get_optional_actor
from oms.core.permissions import Actor
from oms.db.session import transaction
from oms.schemas.misc import NotificationResponse, UnreadCountResponse
from oms.services import notifications as notification_service

router = APIRouter()


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Optional[Actor] = Depends(get_optional_actor)) -> Any:
    return await notification_service.get_notifications(db, actor)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Optional[Actor] = Depends(get_optional_actor)) -> Any:
    return UnreadCountResponse(count=await notification_service.get_unread_count(db, actor))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    notification_id: int) -> Any:
    async with transaction(db):
        notification = await notification_service.mark_as_read(db, actor, notification_id)
    return notification


@router.post("/read-all", response_model=UnreadCountResponse)
async def mark_all_as_read(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)) -> Any:
    """Returns how many notifications were marked"""
    async with transaction(db):
        marked = await notification_service.mark_all_as_read(db, actor)
    return UnreadCountResponse(count=marked)
