"""
Notification dispatcher

RECIPIENTS is the whole fan-out contract: for every order event it lists who
is told and with which title / message template. dispatch() runs inside the
caller's transaction, so a failed operation leaves no notification behind.
"""

import logging
from typing import Dict, List, NamedTuple, Optional, Tuple

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.config import settings
from oms.core.exceptions import AuthorizationDenied, NotificationNotFound
from oms.core.permissions import Actor, ACCOUNTANT, WAREHOUSE_MANAGER, SHIPPER
from oms.models.notification import (
    Notification, ORDER_SUBMITTED, ORDER_APPROVED, ORDER_REJECTED, EDIT_REQUESTED,
    WAREHOUSE_CONFIRMED, WAREHOUSE_REJECTED, ORDER_SHIPPED, ORDER_COMPLETED,
    ORDER_FAILED, ORDER_CANCELLED,
)
from oms.models.order import Order
from oms.models.profile import Profile

logger = logging.getLogger(__name__)

# audience marker for the profile that created the order
CREATOR = "creator"


class Audience(NamedTuple):
    target: str  # CREATOR or a role
    title: str
    message: str


_STATUS_TITLE = "Order {status_title}"
_STATUS_MESSAGE = "Order {order_number} status updated to {status}"

RECIPIENTS: Dict[str, Tuple[Audience, ...]] = {
    ORDER_SUBMITTED: (
        Audience(ACCOUNTANT, "New Order Submitted", "Order {order_number} from {customer_name} needs approval"),
    ),
    ORDER_APPROVED: (
        Audience(CREATOR, "Order Approved", "Your order {order_number} has been approved"),
        Audience(WAREHOUSE_MANAGER, "Order Ready for Processing",
                 "Order {order_number} has been approved and needs inventory confirmation"),
    ),
    ORDER_REJECTED: (
        Audience(CREATOR, "Order Rejected", "Your order {order_number} has been rejected: {reason}"),
    ),
    EDIT_REQUESTED: (
        Audience(CREATOR, "Order Edit Requested", "Changes requested for order {order_number}: {reason}"),
    ),
    WAREHOUSE_CONFIRMED: (
        Audience(SHIPPER, "Order Ready to Ship", "Order {order_number} is ready for shipping"),
    ),
    WAREHOUSE_REJECTED: (
        Audience(CREATOR, "Order Rejected by Warehouse", "Warehouse rejected order {order_number}: {reason}"),
        Audience(ACCOUNTANT, "Order Rejected by Warehouse", "Warehouse rejected order {order_number}: {reason}"),
    ),
    ORDER_SHIPPED: (Audience(CREATOR, _STATUS_TITLE, _STATUS_MESSAGE),),
    ORDER_COMPLETED: (Audience(CREATOR, _STATUS_TITLE, _STATUS_MESSAGE),),
    ORDER_FAILED: (Audience(CREATOR, _STATUS_TITLE, _STATUS_MESSAGE),),
    ORDER_CANCELLED: (Audience(CREATOR, _STATUS_TITLE, _STATUS_MESSAGE),),
}


def notify(
    db: AsyncSession,
    user_id: int,
    type: str,
    title: str,
    message: str,
    order: Optional[Order] = None) -> Notification:
    """Add one notification row to the current transaction"""
    notification = Notification(
        user_id=user_id,
        order_id=order.id if order else None,
        order_number=order.order_number if order else None,
        type=type,
        title=title,
        message=message,
        is_read=False,
    )
    db.add(notification)
    return notification


async def profile_ids_with_role(db: AsyncSession, role: str) -> List[int]:
    result = await db.execute(select(Profile.id).where(Profile.role == role).order_by(Profile.id))
    return list(result.scalars().all())


async def dispatch(db: AsyncSession, event: str, order: Order, **context) -> List[Notification]:
    """Fan an order event out to every audience listed in RECIPIENTS"""
    values = {
        "order_number": order.order_number,
        "customer_name": order.customer_name,
        "status": order.status,
        "status_title": order.status.replace("_", " ").upper(),
        **context,
    }
    created = []
    for audience in RECIPIENTS[event]:
        if audience.target == CREATOR:
            user_ids = [order.created_by]
        else:
            user_ids = await profile_ids_with_role(db, audience.target)
        title = audience.title.format(**values)
        message = audience.message.format(**values)
        for user_id in user_ids:
            created.append(notify(db, user_id, event, title, message, order))
    logger.info(f"Dispatched {event} for order {order.order_number} to {len(created)} recipient(s)")
    return created


# ===== Queries =====

async def get_notifications(db: AsyncSession, actor: Optional[Actor]) -> List[Notification]:
    """Latest notifications of the actor, empty when it has no profile"""
    if actor is None:
        return []
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == actor.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(settings.NOTIFICATION_LIST_LIMIT)
    )
    return list(result.scalars().all())


async def get_unread_count(db: AsyncSession, actor: Optional[Actor]) -> int:
    if actor is None:
        return 0
    result = await db.execute(
        select(func.count(Notification.id))
        .where(Notification.user_id == actor.id, Notification.is_read.is_(False))
    )
    return result.scalar() or 0


async def mark_as_read(db: AsyncSession, actor: Actor, notification_id: int) -> Notification:
    notification = await db.get(Notification, notification_id)
    if not notification:
        raise NotificationNotFound()
    if notification.user_id != actor.id:
        raise AuthorizationDenied("You can only mark your own notifications as read")
    notification.is_read = True
    return notification


async def mark_all_as_read(db: AsyncSession, actor: Actor) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == actor.id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount
