"""
Sales order state machine

TRANSITIONS is the only place that says which role may move an order from
which status to which status. Every operation below:

1. checks the role gate (before the order is even loaded)
2. loads the order with a row lock
3. checks the current status against the transition's from-statuses
4. applies the side effects and notifications inside the caller's transaction

Approval runs in two phases: resolve and validate every line, then reduce
stock for every line. Nothing is written unless all lines pass.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, NamedTuple, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.exceptions import (
    AuthorizationDenied, InsufficientStock, InvalidState, OrderNotFound, ProductNotFound,
)
from oms.core.permissions import (
    Actor, authorize, ROLES, SALES, WAREHOUSE_MANAGER, SHIPPER,
    ORDER_CREATORS, ORDER_REVIEWERS, WAREHOUSE_STAFF, SHIPPING_STAFF, ADMIN_ONLY,
)
from oms.models.notification import (
    ORDER_SUBMITTED, ORDER_APPROVED, ORDER_REJECTED, EDIT_REQUESTED as EDIT_REQUESTED_EVENT,
    WAREHOUSE_CONFIRMED as WAREHOUSE_CONFIRMED_EVENT, WAREHOUSE_REJECTED as WAREHOUSE_REJECTED_EVENT,
    ORDER_SHIPPED, ORDER_COMPLETED, ORDER_FAILED, ORDER_CANCELLED,
)
from oms.models.order import (
    Order, OrderItem, OrderComment, OrderShippedQuantity,
    PENDING, APPROVED, EDIT_REQUESTED, REJECTED, WAREHOUSE_CONFIRMED, WAREHOUSE_REJECTED,
    SHIPPED, COMPLETED, PARTIAL_COMPLETE, FAILED, CANCELLED, STOCK_COMMITTED_STATUSES,
)
from oms.models.product import Product
from oms.schemas.order import OrderCreate, ShippedQuantityEntry
from oms.services.inventory import ship_stock, return_stock
from oms.services.notifications import dispatch
from oms.services.numbering import generate_document_number
from oms.services.products import Unresolved, lookup_product_by_id_or_code

logger = logging.getLogger(__name__)


class Transition(NamedTuple):
    action: str
    from_statuses: Tuple[str, ...]
    to_status: str
    allowed_roles: Tuple[str, ...]
    description: str  # completes "Only <roles> can ..."
    invalid_message: str


CLOSABLE = (WAREHOUSE_CONFIRMED, SHIPPED)

TRANSITIONS: Dict[str, Transition] = {t.action: t for t in (
    Transition("approve", (PENDING,), APPROVED, ORDER_REVIEWERS,
               "approve orders", "Only pending orders can be approved"),
    Transition("reject", (PENDING,), REJECTED, ORDER_REVIEWERS,
               "reject orders", "Only pending orders can be rejected"),
    Transition("request_edit", (PENDING,), EDIT_REQUESTED, ORDER_REVIEWERS,
               "request order edits", "Edits can only be requested for pending orders"),
    Transition("confirm_warehouse", (APPROVED,), WAREHOUSE_CONFIRMED, WAREHOUSE_STAFF,
               "confirm orders in the warehouse", "Only approved orders can be confirmed by the warehouse"),
    Transition("reject_warehouse", (APPROVED,), WAREHOUSE_REJECTED, WAREHOUSE_STAFF,
               "reject orders in the warehouse", "Only approved orders can be rejected by the warehouse"),
    Transition("ship", (WAREHOUSE_CONFIRMED,), SHIPPED, SHIPPING_STAFF,
               "mark orders as shipped", "Only warehouse confirmed orders can be shipped"),
    Transition("complete", CLOSABLE, COMPLETED, ROLES,
               "complete orders", "Only warehouse confirmed or shipped orders can be completed"),
    Transition("partial_complete", CLOSABLE, PARTIAL_COMPLETE, ROLES,
               "complete orders", "Only warehouse confirmed or shipped orders can be completed"),
    Transition("fail", CLOSABLE, FAILED, ROLES,
               "mark orders as failed", "Only warehouse confirmed or shipped orders can be marked as failed"),
    Transition("close_cancelled", CLOSABLE, CANCELLED, ROLES,
               "cancel orders", "Only warehouse confirmed or shipped orders can be cancelled this way"),
    Transition("cancel", (PENDING, EDIT_REQUESTED, APPROVED, WAREHOUSE_REJECTED), CANCELLED, ADMIN_ONLY,
               "cancel orders", "This order can no longer be cancelled"),
)}

# update_order_status() target status -> transition, notification event
STATUS_UPDATES: Dict[str, Tuple[str, str]] = {
    SHIPPED: ("ship", ORDER_SHIPPED),
    COMPLETED: ("complete", ORDER_COMPLETED),
    PARTIAL_COMPLETE: ("partial_complete", ORDER_COMPLETED),
    FAILED: ("fail", ORDER_FAILED),
    CANCELLED: ("close_cancelled", ORDER_CANCELLED),
}

# roles that only see orders in some statuses; sales sees own orders, the rest see all
VISIBLE_STATUSES: Dict[str, Tuple[str, ...]] = {
    WAREHOUSE_MANAGER: (APPROVED, WAREHOUSE_CONFIRMED, WAREHOUSE_REJECTED),
    SHIPPER: (WAREHOUSE_CONFIRMED, SHIPPED, COMPLETED, PARTIAL_COMPLETE, FAILED),
}


# ===== Helpers =====

async def load_order(db: AsyncSession, order_id: int, for_update: bool = False) -> Order:
    query = select(Order).where(Order.id == order_id)
    if for_update:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    order = result.scalar_one_or_none()
    if not order:
        raise OrderNotFound()
    return order


def can_view(actor: Actor, order: Order) -> bool:
    if actor.role == SALES:
        return order.created_by == actor.id
    if actor.role in VISIBLE_STATUSES:
        return order.status in VISIBLE_STATUSES[actor.role]
    return True


def ensure_visible(actor: Actor, order: Order) -> None:
    if can_view(actor, order):
        return
    logger.warning(f"Profile {actor.id} ({actor.role}) tried to access order {order.order_number}")
    if actor.role == SALES:
        raise AuthorizationDenied("You can only view your own orders")
    raise AuthorizationDenied(f"Order {order.order_number} is not visible to your role")


async def _start_transition(db: AsyncSession, actor: Actor, order_id: int, action: str) -> Tuple[Order, Transition]:
    rule = TRANSITIONS[action]
    authorize(actor, rule.allowed_roles, rule.description)
    order = await load_order(db, order_id, for_update=True)
    if order.status not in rule.from_statuses:
        logger.warning(f"Order {order.order_number}: {action} refused in status {order.status}")
        raise InvalidState(rule.invalid_message)
    return order, rule


def _append_comment(order: Order, actor: Actor, text: str) -> OrderComment:
    comment = OrderComment(
        user_id=actor.id,
        user_name=actor.name,
        user_role=actor.role,
        comment=text,
        created_at=datetime.utcnow(),
    )
    order.comments.append(comment)
    return comment


async def _resolve_line(db: AsyncSession, item: OrderItem) -> Product:
    resolution = await lookup_product_by_id_or_code(db, item.product_ref, for_update=True)
    if isinstance(resolution, Unresolved):
        logger.warning(f"Order line {item.line_no}: no product for ref {resolution.ref}")
        raise ProductNotFound(f"Product not found for item {item.product_name}")
    return resolution.product


async def _restock(db: AsyncSession, actor: Actor, order: Order, reason: str) -> None:
    """Give back what approval took; goods never left the warehouse"""
    for item in order.items:
        product = await _resolve_line(db, item)
        await return_stock(
            db, actor, product, item.quantity,
            order_id=order.id,
            notes=f"{reason}: order {order.order_number} line {item.line_no}",
        )


# ===== Creation =====

async def create_order(db: AsyncSession, actor: Actor, data: OrderCreate) -> Order:
    """Create a pending order; the total is computed here once and never again"""
    authorize(actor, ORDER_CREATORS, "create orders")

    items = []
    for line_no, line in enumerate(data.items, start=1):
        items.append(OrderItem(
            line_no=line_no,
            product_ref=line.product_ref,
            product_name=line.product_name,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=line.unit_price * line.quantity,
        ))
    total_amount = sum((i.total_price for i in items), Decimal("0"))

    address = data.shipping_address
    order = Order(
        order_number=await generate_document_number(db, Order.order_number, "SO"),
        customer_id=data.customer_id,
        customer_name=data.customer_name,
        total_amount=total_amount,
        status=PENDING,
        created_by=actor.id,
        shipping_street=address.street,
        shipping_city=address.city,
        shipping_state=address.state,
        shipping_zip_code=address.zip_code,
        shipping_country=address.country,
        items=items,
        comments=[],
        shipped_quantities=[],
    )
    db.add(order)
    await db.flush()

    await dispatch(db, ORDER_SUBMITTED, order)
    logger.info(f"Order {order.order_number} created by {actor.name}: {len(items)} line(s), total {total_amount}")
    return order


# ===== Transitions =====

async def approve_order(db: AsyncSession, actor: Actor, order_id: int) -> Order:
    order, rule = await _start_transition(db, actor, order_id, "approve")

    # phase 1: resolve every line and check the aggregated demand per product
    demand: Dict[int, Tuple[Product, int]] = {}
    lines: List[Tuple[OrderItem, Product]] = []
    for item in order.items:
        product = await _resolve_line(db, item)
        lines.append((item, product))
        _, requested = demand.get(product.id, (product, 0))
        demand[product.id] = (product, requested + item.quantity)

    for product, requested in demand.values():
        if product.stock_quantity < requested:
            logger.warning(
                f"Order {order.order_number} not approved: {product.product_code} "
                f"has {product.stock_quantity}, needs {requested}"
            )
            raise InsufficientStock(product.product_name, product.stock_quantity, requested)

    # phase 2: guarded reductions, one ship transaction per line
    for item, product in lines:
        await ship_stock(
            db, actor, product, item.quantity,
            order_id=order.id,
            notes=f"Order {order.order_number} line {item.line_no}",
        )

    order.status = rule.to_status
    order.assigned_accountant = actor.id
    await dispatch(db, ORDER_APPROVED, order)
    logger.info(f"Order {order.order_number} approved by {actor.name}")
    return order


async def reject_order(db: AsyncSession, actor: Actor, order_id: int, reason: str) -> Order:
    order, rule = await _start_transition(db, actor, order_id, "reject")
    order.status = rule.to_status
    order.assigned_accountant = actor.id
    _append_comment(order, actor, f"Order rejected: {reason}")
    await dispatch(db, ORDER_REJECTED, order, reason=reason)
    logger.info(f"Order {order.order_number} rejected by {actor.name}")
    return order


async def request_edit(db: AsyncSession, actor: Actor, order_id: int, reason: str) -> Order:
    order, rule = await _start_transition(db, actor, order_id, "request_edit")
    order.status = rule.to_status
    order.assigned_accountant = actor.id
    _append_comment(order, actor, f"Edit requested: {reason}")
    await dispatch(db, EDIT_REQUESTED_EVENT, order, reason=reason)
    logger.info(f"Order {order.order_number} sent back for edits by {actor.name}")
    return order


async def confirm_warehouse(db: AsyncSession, actor: Actor, order_id: int) -> Order:
    order, rule = await _start_transition(db, actor, order_id, "confirm_warehouse")
    order.status = rule.to_status
    order.assigned_warehouse_manager = actor.id
    await dispatch(db, WAREHOUSE_CONFIRMED_EVENT, order)
    logger.info(f"Order {order.order_number} confirmed by warehouse ({actor.name})")
    return order


async def reject_warehouse(db: AsyncSession, actor: Actor, order_id: int, reason: str) -> Order:
    """Warehouse cannot fulfil an approved order: stock taken at approval goes back"""
    order, rule = await _start_transition(db, actor, order_id, "reject_warehouse")
    await _restock(db, actor, order, "Warehouse rejected")
    order.status = rule.to_status
    order.assigned_warehouse_manager = actor.id
    _append_comment(order, actor, f"Warehouse rejected: {reason}")
    await dispatch(db, WAREHOUSE_REJECTED_EVENT, order, reason=reason)
    logger.info(f"Order {order.order_number} rejected by warehouse ({actor.name})")
    return order


async def update_order_status(
    db: AsyncSession,
    actor: Actor,
    order_id: int,
    status: str,
    tracking_number: Optional[str] = None,
    shipping_quantities: Optional[List[ShippedQuantityEntry]] = None) -> Order:
    """Fulfilment updates: shipped, then one of the closing statuses"""
    if status not in STATUS_UPDATES:
        raise InvalidState(f"Unsupported status update: {status}")
    action, event = STATUS_UPDATES[status]

    order, rule = await _start_transition(db, actor, order_id, action)
    ensure_visible(actor, order)
    previous = order.status

    if tracking_number:
        order.tracking_number = tracking_number
    if shipping_quantities is not None:
        order.shipped_quantities = [
            OrderShippedQuantity(product_ref=e.product_ref, shipped_quantity=e.shipped_quantity)
            for e in shipping_quantities
        ]
    if actor.role == SHIPPER:
        order.assigned_shipper = actor.id
    if rule.to_status == CANCELLED and previous in STOCK_COMMITTED_STATUSES:
        await _restock(db, actor, order, "Order cancelled")

    order.status = rule.to_status
    await dispatch(db, event, order)
    logger.info(f"Order {order.order_number} {previous} -> {order.status} by {actor.name}")
    return order


async def cancel_order(db: AsyncSession, actor: Actor, order_id: int, reason: Optional[str] = None) -> Order:
    """Administrative cancel before shipping; committed stock is restored"""
    order, rule = await _start_transition(db, actor, order_id, "cancel")
    previous = order.status
    if previous in STOCK_COMMITTED_STATUSES:
        await _restock(db, actor, order, "Order cancelled")
    order.status = rule.to_status
    if reason:
        _append_comment(order, actor, f"Order cancelled: {reason}")
    await dispatch(db, ORDER_CANCELLED, order)
    logger.info(f"Order {order.order_number} cancelled from {previous} by {actor.name}")
    return order


# ===== Comments and queries =====

async def add_order_comment(db: AsyncSession, actor: Actor, order_id: int, text: str) -> Order:
    order = await load_order(db, order_id, for_update=True)
    ensure_visible(actor, order)
    _append_comment(order, actor, text)
    return order


async def get_order(db: AsyncSession, actor: Actor, order_id: int) -> Order:
    order = await load_order(db, order_id)
    ensure_visible(actor, order)
    return order


async def list_orders(
    db: AsyncSession,
    actor: Actor,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 20) -> Tuple[List[Order], int]:
    """Orders visible to the actor, newest first"""
    query = select(Order)
    if actor.role == SALES:
        query = query.where(Order.created_by == actor.id)
    elif actor.role in VISIBLE_STATUSES:
        query = query.where(Order.status.in_(VISIBLE_STATUSES[actor.role]))
    if status:
        query = query.where(Order.status == status)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()

    query = query.order_by(Order.created_at.desc(), Order.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total
