import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.exceptions import InvalidState
from oms.core.permissions import Actor, authorize, ADMIN_ONLY
from oms.models.delivery_voucher import DeliveryVoucher, DeliveryVoucherItem
from oms.models.order import APPROVED, WAREHOUSE_CONFIRMED
from oms.services.numbering import generate_document_number
from oms.services.orders import ensure_visible, load_order

logger = logging.getLogger(__name__)

VOUCHER_STATUSES = (APPROVED, WAREHOUSE_CONFIRMED)


async def create_delivery_voucher(db: AsyncSession, actor: Actor, order_id: int) -> DeliveryVoucher:
    """Snapshot the order lines into a voucher; the order status does not change"""
    authorize(actor, ADMIN_ONLY, "create delivery vouchers")
    order = await load_order(db, order_id)
    if order.status not in VOUCHER_STATUSES:
        raise InvalidState("Voucher can only be created for approved orders")

    voucher = DeliveryVoucher(
        voucher_number=await generate_document_number(db, DeliveryVoucher.voucher_number, "DV"),
        order_id=order.id,
        order_number=order.order_number,
        customer_name=order.customer_name,
        created_by=actor.id,
        items=[
            DeliveryVoucherItem(
                line_no=item.line_no,
                product_ref=item.product_ref,
                product_name=item.product_name,
                quantity=item.quantity,
            )
            for item in order.items
        ],
    )
    db.add(voucher)
    await db.flush()
    logger.info(f"Delivery voucher {voucher.voucher_number} created for order {order.order_number}")
    return voucher


async def get_vouchers_by_order(db: AsyncSession, actor: Actor, order_id: int) -> List[DeliveryVoucher]:
    """Newest first"""
    order = await load_order(db, order_id)
    ensure_visible(actor, order)
    result = await db.execute(
        select(DeliveryVoucher)
        .where(DeliveryVoucher.order_id == order_id)
        .order_by(DeliveryVoucher.created_at.desc(), DeliveryVoucher.id.desc())
    )
    return list(result.scalars().all())
