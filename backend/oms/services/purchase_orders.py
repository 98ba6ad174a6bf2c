"""
Purchase orders

Goods are received against a PO through inventory batches; after every
receipt refresh_receipt_status() moves the PO to partially_received or
completed by comparing received and requested quantities per product.
"""

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.exceptions import InvalidState, PurchaseOrderNotFound, UniquenessViolation
from oms.core.permissions import Actor, authorize, WAREHOUSE_STAFF, ADMIN_ONLY
from oms.models.inventory import InventoryTransaction, TX_RECEIVE
from oms.models.purchase_order import (
    PurchaseOrder, PurchaseOrderItem, PurchaseOrderComment,
    PO_DRAFT, PO_PENDING_APPROVAL, PO_APPROVED, PO_SENT_TO_SUPPLIER,
    PO_PARTIALLY_RECEIVED, PO_COMPLETED, PO_CANCELLED, PO_TERMINAL_STATUSES,
)
from oms.schemas.purchase_order import PurchaseOrderCreate, PurchaseOrderUpdate, PurchaseOrderItemCreate
from oms.services.numbering import generate_document_number
from oms.services.products import Resolved, lookup_product_by_id_or_code

logger = logging.getLogger(__name__)

transitions = {
    "submit": {"from": [PO_DRAFT], "to": PO_PENDING_APPROVAL, "roles": WAREHOUSE_STAFF, "action": "submit purchase orders"},
    "approve": {"from": [PO_PENDING_APPROVAL], "to": PO_APPROVED, "roles": ADMIN_ONLY, "action": "approve purchase orders"},
    "reject": {"from": [PO_PENDING_APPROVAL], "to": PO_DRAFT, "roles": ADMIN_ONLY, "action": "reject purchase orders"},
    "mark_sent": {"from": [PO_APPROVED], "to": PO_SENT_TO_SUPPLIER, "roles": WAREHOUSE_STAFF, "action": "send purchase orders"},
    "cancel": {
        "from": [PO_DRAFT, PO_PENDING_APPROVAL, PO_APPROVED, PO_SENT_TO_SUPPLIER, PO_PARTIALLY_RECEIVED],
        "to": PO_CANCELLED, "roles": WAREHOUSE_STAFF, "action": "cancel purchase orders",
    },
}


async def get_purchase_order(db: AsyncSession, actor: Actor, po_id: int) -> PurchaseOrder:
    authorize(actor, WAREHOUSE_STAFF, "view purchase orders")
    po = await db.get(PurchaseOrder, po_id)
    if not po:
        raise PurchaseOrderNotFound()
    return po


async def list_purchase_orders(db: AsyncSession, actor: Actor, status: Optional[str] = None) -> List[PurchaseOrder]:
    authorize(actor, WAREHOUSE_STAFF, "view purchase orders")
    query = select(PurchaseOrder)
    if status:
        query = query.where(PurchaseOrder.status == status)
    result = await db.execute(query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc()))
    return list(result.scalars().all())


def _build_items(items: List[PurchaseOrderItemCreate]) -> List[PurchaseOrderItem]:
    rows = []
    for line_no, item in enumerate(items, start=1):
        rows.append(PurchaseOrderItem(
            line_no=line_no,
            product_ref=item.product_ref,
            product_name=item.product_name,
            requested_quantity=item.requested_quantity,
            unit_price=item.unit_price,
            total_price=item.unit_price * item.requested_quantity,
        ))
    return rows


def _total(items: List[PurchaseOrderItem]) -> Decimal:
    return sum((i.total_price for i in items), Decimal("0"))


async def create_purchase_order(db: AsyncSession, actor: Actor, data: PurchaseOrderCreate) -> PurchaseOrder:
    authorize(actor, WAREHOUSE_STAFF, "create purchase orders")

    if data.po_number:
        existing = await db.execute(select(PurchaseOrder.id).where(PurchaseOrder.po_number == data.po_number))
        if existing.first():
            raise UniquenessViolation("PO number already exists")
        po_number = data.po_number
    else:
        po_number = await generate_document_number(db, PurchaseOrder.po_number, "PO")

    items = _build_items(data.items)
    po = PurchaseOrder(
        po_number=po_number,
        supplier_name=data.supplier_name,
        total_amount=_total(items),
        status=PO_DRAFT,
        created_by=actor.id,
        items=items,
        comments=[],
    )
    db.add(po)
    await db.flush()
    logger.info(f"Purchase order {po.po_number} created by {actor.name}, total {po.total_amount}")
    return po


async def update_purchase_order(
    db: AsyncSession,
    actor: Actor,
    po_id: int,
    data: PurchaseOrderUpdate) -> PurchaseOrder:
    po = await get_purchase_order(db, actor, po_id)
    if po.status != PO_DRAFT:
        raise InvalidState("Only draft purchase orders can be edited")

    if data.supplier_name is not None:
        po.supplier_name = data.supplier_name
    if data.items is not None:
        po.items = _build_items(data.items)
        po.total_amount = _total(po.items)
    return po


async def _transition(
    db: AsyncSession,
    actor: Actor,
    po_id: int,
    action: str) -> PurchaseOrder:
    rule = transitions[action]
    authorize(actor, rule["roles"], rule["action"])
    po = await get_purchase_order(db, actor, po_id)
    if po.status not in rule["from"]:
        logger.warning(f"PO {po.po_number}: cannot {action} from {po.status}")
        raise InvalidState(f"Cannot {action.replace('_', ' ')} a purchase order in status {po.status}")
    po.status = rule["to"]
    logger.info(f"PO {po.po_number} -> {po.status} by {actor.name}")
    return po


def _add_comment(po: PurchaseOrder, actor: Actor, text: str) -> PurchaseOrderComment:
    comment = PurchaseOrderComment(
        user_id=actor.id,
        user_name=actor.name,
        comment=text,
        created_at=datetime.utcnow(),
    )
    po.comments.append(comment)
    return comment


async def submit_purchase_order(db: AsyncSession, actor: Actor, po_id: int) -> PurchaseOrder:
    return await _transition(db, actor, po_id, "submit")


async def approve_purchase_order(db: AsyncSession, actor: Actor, po_id: int) -> PurchaseOrder:
    po = await _transition(db, actor, po_id, "approve")
    po.approved_by = actor.id
    po.approved_at = datetime.utcnow()
    return po


async def reject_purchase_order(db: AsyncSession, actor: Actor, po_id: int, reason: str) -> PurchaseOrder:
    """Back to draft with the reason recorded"""
    po = await _transition(db, actor, po_id, "reject")
    po.rejection_reason = reason
    _add_comment(po, actor, f"Purchase order rejected: {reason}")
    return po


async def mark_purchase_order_sent(db: AsyncSession, actor: Actor, po_id: int) -> PurchaseOrder:
    return await _transition(db, actor, po_id, "mark_sent")


async def cancel_purchase_order(db: AsyncSession, actor: Actor, po_id: int) -> PurchaseOrder:
    return await _transition(db, actor, po_id, "cancel")


async def add_purchase_order_comment(db: AsyncSession, actor: Actor, po_id: int, text: str) -> PurchaseOrder:
    po = await get_purchase_order(db, actor, po_id)
    _add_comment(po, actor, text)
    return po


async def delete_purchase_order(db: AsyncSession, actor: Actor, po_id: int) -> None:
    authorize(actor, ADMIN_ONLY, "delete purchase orders")
    po = await get_purchase_order(db, actor, po_id)
    await db.delete(po)
    logger.info(f"Purchase order {po.po_number} deleted by {actor.name}")


async def refresh_receipt_status(db: AsyncSession, po: PurchaseOrder) -> PurchaseOrder:
    """Recompute the receiving status from the receive transactions booked against the PO"""
    if po.status in PO_TERMINAL_STATUSES:
        return po

    result = await db.execute(
        select(InventoryTransaction.product_id, func.sum(InventoryTransaction.quantity))
        .where(
            InventoryTransaction.purchase_order_id == po.id,
            InventoryTransaction.transaction_type == TX_RECEIVE,
        )
        .group_by(InventoryTransaction.product_id)
    )
    received: Dict[int, int] = {product_id: qty or 0 for product_id, qty in result.all()}
    if not received:
        return po

    requested: Dict[int, int] = defaultdict(int)
    unresolved = False
    for item in po.items:
        resolution = await lookup_product_by_id_or_code(db, item.product_ref)
        if isinstance(resolution, Resolved):
            requested[resolution.product.id] += item.requested_quantity
        else:
            unresolved = True

    complete = not unresolved and all(received.get(pid, 0) >= qty for pid, qty in requested.items())
    po.status = PO_COMPLETED if complete else PO_PARTIALLY_RECEIVED
    logger.info(f"PO {po.po_number} receipt status -> {po.status}")
    return po
