"""
Inventory ledger

Every change of products.stock_quantity in this module is paired with an
InventoryTransaction carrying the same signed delta, so stock always equals
the sum of the product's transactions.

- receive: create_inventory_batch
- adjust / damage / expire / return: adjust_inventory_quantity, update_inventory_batch
- batch removal: delete_inventory_batch (compensating adjust row)
- order approval / restock: ship_stock, return_stock
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.exceptions import (
    BatchNotFound, InsufficientStock, InvalidState, NegativeQuantity,
    PurchaseOrderNotFound, UniquenessViolation,
)
from oms.core.permissions import Actor, authorize, WAREHOUSE_STAFF, ADMIN_ONLY
from oms.models.inventory import (
    InventoryBatch, InventoryTransaction, ADJUSTMENT_TYPES, BATCH_AVAILABLE, BATCH_RESERVED,
    BATCH_EXPIRED, TX_RECEIVE, TX_SHIP, TX_ADJUST, TX_RETURN,
)
from oms.models.order import Order, OrderShippedQuantity, APPROVED, WAREHOUSE_CONFIRMED, SHIPPED
from oms.models.product import Product
from oms.models.purchase_order import PurchaseOrder, PO_RECEIVABLE_STATUSES
from oms.schemas.inventory import InventoryBatchCreate, InventoryBatchUpdate, ProductAvailability
from oms.services.products import get_product
from oms.services.purchase_orders import refresh_receipt_status

logger = logging.getLogger(__name__)

# orders whose recorded shipped quantities count against availability
OPEN_ORDER_STATUSES = (APPROVED, WAREHOUSE_CONFIRMED, SHIPPED)

TRANSACTION_LIST_LIMIT = 500


# ===== Ledger primitives =====

def record_transaction(
    db: AsyncSession,
    actor: Actor,
    product_id: int,
    transaction_type: str,
    quantity: int,
    batch: Optional[InventoryBatch] = None,
    order_id: Optional[int] = None,
    purchase_order_id: Optional[int] = None,
    notes: Optional[str] = None) -> InventoryTransaction:
    """Append one movement; rows are never updated or deleted afterwards"""
    tx = InventoryTransaction(
        batch_id=batch.id if batch else None,
        batch_number=batch.batch_number if batch else None,
        product_id=product_id,
        transaction_type=transaction_type,
        quantity=quantity,
        order_id=order_id,
        purchase_order_id=purchase_order_id,
        notes=notes,
        performed_by=actor.id,
        performed_by_name=actor.name,
        timestamp=datetime.utcnow(),
    )
    db.add(tx)
    return tx


async def _locked_product(db: AsyncSession, product_id: int) -> Product:
    result = await db.execute(
        select(Product).where(Product.id == product_id)
        .with_for_update().execution_options(populate_existing=True)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise InvalidState(f"Batch references missing product {product_id}")
    return product


async def _locked_batch(db: AsyncSession, batch_id: int) -> InventoryBatch:
    result = await db.execute(
        select(InventoryBatch).where(InventoryBatch.id == batch_id)
        .with_for_update().execution_options(populate_existing=True)
    )
    batch = result.scalar_one_or_none()
    if not batch:
        raise BatchNotFound()
    return batch


async def _apply_batch_delta(
    db: AsyncSession,
    actor: Actor,
    batch: InventoryBatch,
    delta: int,
    transaction_type: str,
    notes: Optional[str]) -> InventoryTransaction:
    """Move batch quantity and product stock by the same delta"""
    product = await _locked_product(db, batch.product_id)

    new_batch_quantity = batch.quantity + delta
    if new_batch_quantity < 0:
        logger.warning(f"Rejected {transaction_type} {delta:+d} on batch {batch.batch_number}: has {batch.quantity}")
        raise NegativeQuantity()
    new_stock = product.stock_quantity + delta
    if new_stock < 0:
        logger.warning(f"Rejected {transaction_type} {delta:+d}: stock of {product.product_code} is {product.stock_quantity}")
        raise NegativeQuantity(f"Insufficient stock for {product.product_name}")

    batch.quantity = new_batch_quantity
    batch.updated_by = actor.id
    product.stock_quantity = new_stock

    tx = record_transaction(
        db, actor, product.id, transaction_type, delta,
        batch=batch,
        notes=notes,
    )
    logger.info(
        f"Batch {batch.batch_number} {transaction_type} {delta:+d}: "
        f"batch={batch.quantity}, {product.product_code} stock={product.stock_quantity}"
    )
    return tx


async def ship_stock(
    db: AsyncSession,
    actor: Actor,
    product: Product,
    quantity: int,
    order_id: Optional[int] = None,
    notes: Optional[str] = None) -> InventoryTransaction:
    """Guarded decrement of product stock

    The UPDATE only matches while enough stock is left, so a concurrent
    writer that got there first turns into InsufficientStock here.
    """
    result = await db.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = (await db.execute(
            select(Product.stock_quantity).where(Product.id == product.id)
        )).scalar()
        raise InsufficientStock(product.product_name, current or 0, quantity)
    await db.refresh(product, attribute_names=["stock_quantity", "updated_at"])

    return record_transaction(
        db, actor, product.id, TX_SHIP, -quantity,
        order_id=order_id,
        notes=notes,
    )


async def return_stock(
    db: AsyncSession,
    actor: Actor,
    product: Product,
    quantity: int,
    order_id: Optional[int] = None,
    notes: Optional[str] = None) -> InventoryTransaction:
    """Put goods that never left the warehouse back into stock"""
    await db.execute(
        update(Product)
        .where(Product.id == product.id)
        .values(stock_quantity=Product.stock_quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(product, attribute_names=["stock_quantity", "updated_at"])

    return record_transaction(
        db, actor, product.id, TX_RETURN, quantity,
        order_id=order_id,
        notes=notes,
    )


# ===== Batch operations =====

async def create_inventory_batch(db: AsyncSession, actor: Actor, data: InventoryBatchCreate) -> InventoryBatch:
    """Receive a batch: batch row + receive transaction + product stock increase"""
    authorize(actor, WAREHOUSE_STAFF, "manage inventory")

    existing = await db.execute(
        select(InventoryBatch.id).where(InventoryBatch.batch_number == data.batch_number)
    )
    if existing.first():
        logger.warning(f"Duplicate batch number {data.batch_number}")
        raise UniquenessViolation("Batch number already exists")

    product = await get_product(db, data.product_id)

    purchase_order = None
    if data.purchase_order_id is not None:
        purchase_order = await db.get(PurchaseOrder, data.purchase_order_id)
        if not purchase_order:
            raise PurchaseOrderNotFound()

    batch = InventoryBatch(
        product_id=product.id,
        product_code=product.product_code,
        product_name=product.product_name,
        batch_number=data.batch_number,
        quantity=data.quantity,
        received_date=data.received_date,
        expiry_date=data.expiry_date,
        manufacture_date=data.manufacture_date,
        supplier_name=data.supplier_name,
        purchase_order_id=data.purchase_order_id,
        location=data.location,
        notes=data.notes,
        status=BATCH_AVAILABLE,
        created_by=actor.id,
        updated_by=actor.id,
    )
    db.add(batch)
    await db.flush()

    product.stock_quantity = product.stock_quantity + data.quantity
    record_transaction(
        db, actor, product.id, TX_RECEIVE, data.quantity,
        batch=batch,
        purchase_order_id=data.purchase_order_id,
        notes=data.notes or "Batch received",
    )

    if purchase_order and purchase_order.status in PO_RECEIVABLE_STATUSES:
        await db.flush()
        await refresh_receipt_status(db, purchase_order)

    logger.info(f"Received batch {batch.batch_number}: {product.product_code} +{data.quantity} by {actor.name}")
    return batch


async def adjust_inventory_quantity(
    db: AsyncSession,
    actor: Actor,
    batch_id: int,
    quantity: int,
    transaction_type: str,
    notes: Optional[str] = None) -> InventoryBatch:
    """Apply a signed delta to a batch and mirror it on product stock"""
    authorize(actor, WAREHOUSE_STAFF, "adjust inventory")
    if quantity == 0:
        raise InvalidState("Adjustment quantity cannot be zero")
    if transaction_type not in ADJUSTMENT_TYPES:
        raise InvalidState(f"Unsupported adjustment type: {transaction_type}")

    batch = await _locked_batch(db, batch_id)
    await _apply_batch_delta(db, actor, batch, quantity, transaction_type, notes)
    return batch


async def update_inventory_batch(
    db: AsyncSession,
    actor: Actor,
    batch_id: int,
    data: InventoryBatchUpdate) -> InventoryBatch:
    authorize(actor, WAREHOUSE_STAFF, "manage inventory")
    batch = await _locked_batch(db, batch_id)

    update_data = data.model_dump(exclude_unset=True)
    new_quantity = update_data.pop("quantity", None)
    if new_quantity is not None and new_quantity != batch.quantity:
        await _apply_batch_delta(
            db, actor, batch, new_quantity - batch.quantity, TX_ADJUST,
            f"Quantity corrected from {batch.quantity} to {new_quantity}",
        )

    for field, value in update_data.items():
        if field == "status" and value is None:
            continue
        setattr(batch, field, value)
    batch.updated_by = actor.id
    return batch


async def delete_inventory_batch(db: AsyncSession, actor: Actor, batch_id: int) -> None:
    """Remove a batch and take its remaining quantity out of product stock

    The reversal is floored at the current product stock and booked as an
    adjust transaction with the delta actually applied.
    """
    authorize(actor, ADMIN_ONLY, "delete inventory batches")
    batch = await _locked_batch(db, batch_id)
    product = await _locked_product(db, batch.product_id)

    reversed_quantity = min(batch.quantity, product.stock_quantity)
    if reversed_quantity > 0:
        product.stock_quantity = product.stock_quantity - reversed_quantity
        record_transaction(
            db, actor, product.id, TX_ADJUST, -reversed_quantity,
            batch=batch,
            notes=f"Batch {batch.batch_number} deleted",
        )

    await db.delete(batch)
    logger.info(
        f"Deleted batch {batch.batch_number}: {product.product_code} -{reversed_quantity}, "
        f"stock={product.stock_quantity}"
    )


async def expire_batches(db: AsyncSession, now: Optional[datetime] = None) -> List[InventoryBatch]:
    """Flag batches past their expiry date; quantities are left for an explicit expire adjustment"""
    now = now or datetime.utcnow()
    result = await db.execute(
        select(InventoryBatch).where(
            InventoryBatch.expiry_date.is_not(None),
            InventoryBatch.expiry_date < now,
            InventoryBatch.status.in_((BATCH_AVAILABLE, BATCH_RESERVED)),
        )
    )
    batches = list(result.scalars().all())
    for batch in batches:
        batch.status = BATCH_EXPIRED
    if batches:
        logger.info(f"Flagged {len(batches)} batch(es) as expired")
    return batches


async def run_expiry_sweep(db: AsyncSession, actor: Actor, now: Optional[datetime] = None) -> List[InventoryBatch]:
    """On-demand run of the nightly sweep"""
    authorize(actor, WAREHOUSE_STAFF, "manage inventory")
    return await expire_batches(db, now)


# ===== Queries =====

async def list_inventory_batches(
    db: AsyncSession,
    actor: Actor,
    status: Optional[str] = None,
    product_id: Optional[int] = None) -> List[InventoryBatch]:
    authorize(actor, WAREHOUSE_STAFF, "view inventory")
    query = select(InventoryBatch)
    if status:
        query = query.where(InventoryBatch.status == status)
    if product_id:
        query = query.where(InventoryBatch.product_id == product_id)
    result = await db.execute(query.order_by(InventoryBatch.received_date.desc(), InventoryBatch.id.desc()))
    return list(result.scalars().all())


async def list_batches_by_product(
    db: AsyncSession,
    actor: Actor,
    product_id: int,
    available_only: bool = False) -> List[InventoryBatch]:
    """Oldest first"""
    authorize(actor, WAREHOUSE_STAFF, "view inventory")
    query = select(InventoryBatch).where(InventoryBatch.product_id == product_id)
    if available_only:
        query = query.where(InventoryBatch.status == BATCH_AVAILABLE, InventoryBatch.quantity > 0)
    result = await db.execute(query.order_by(InventoryBatch.received_date, InventoryBatch.id))
    return list(result.scalars().all())


async def get_batch_by_number(db: AsyncSession, actor: Actor, batch_number: str) -> InventoryBatch:
    authorize(actor, WAREHOUSE_STAFF, "view inventory")
    result = await db.execute(select(InventoryBatch).where(InventoryBatch.batch_number == batch_number))
    batch = result.scalar_one_or_none()
    if not batch:
        raise BatchNotFound()
    return batch


async def list_inventory_transactions(
    db: AsyncSession,
    actor: Actor,
    batch_id: Optional[int] = None,
    product_id: Optional[int] = None,
    limit: int = TRANSACTION_LIST_LIMIT) -> List[InventoryTransaction]:
    """Newest first"""
    authorize(actor, WAREHOUSE_STAFF, "view inventory")
    query = select(InventoryTransaction)
    if batch_id is not None:
        query = query.where(InventoryTransaction.batch_id == batch_id)
    if product_id is not None:
        query = query.where(InventoryTransaction.product_id == product_id)
    result = await db.execute(
        query.order_by(InventoryTransaction.timestamp.desc(), InventoryTransaction.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def _shipped_by_product(db: AsyncSession) -> Dict[int, int]:
    """Shipped quantities on open orders keyed by the product each ref resolves to

    Same precedence as lookup_product_by_id_or_code: a numeric ref naming an
    existing product id belongs to that product, anything else matches by code.
    """
    result = await db.execute(
        select(OrderShippedQuantity.product_ref, OrderShippedQuantity.shipped_quantity)
        .join(Order, Order.id == OrderShippedQuantity.order_id)
        .where(Order.status.in_(OPEN_ORDER_STATUSES))
    )
    by_ref: Dict[str, int] = defaultdict(int)
    for product_ref, shipped in result.all():
        by_ref[product_ref.strip()] += shipped or 0
    if not by_ref:
        return {}

    numeric = [int(ref) for ref in by_ref if ref.isdigit()]
    ids = set()
    if numeric:
        ids = set((await db.execute(select(Product.id).where(Product.id.in_(numeric)))).scalars().all())
    codes = dict((await db.execute(
        select(Product.product_code, Product.id).where(Product.product_code.in_(list(by_ref)))
    )).all())

    totals: Dict[int, int] = defaultdict(int)
    for ref, shipped in by_ref.items():
        if ref.isdigit() and int(ref) in ids:
            totals[int(ref)] += shipped
        elif ref in codes:
            totals[codes[ref]] += shipped
    return totals


def _availability(product: Product, shipped_by_product: Dict[int, int]) -> ProductAvailability:
    shipped = shipped_by_product.get(product.id, 0)
    return ProductAvailability(
        product_id=product.id,
        product_code=product.product_code,
        product_name=product.product_name,
        stock_quantity=product.stock_quantity,
        shipped_quantity=shipped,
        available=product.stock_quantity - shipped,
    )


async def derive_availability(db: AsyncSession, product_id: int) -> ProductAvailability:
    """available = stock - shipped quantities recorded on open orders"""
    product = await get_product(db, product_id)
    return _availability(product, await _shipped_by_product(db))


async def get_active_products_with_stock(db: AsyncSession, actor: Actor) -> List[ProductAvailability]:
    result = await db.execute(
        select(Product).where(Product.status == "active").order_by(Product.product_code)
    )
    shipped_by_product = await _shipped_by_product(db)
    return [_availability(p, shipped_by_product) for p in result.scalars().all()]


async def get_product_stock_movements(
    db: AsyncSession,
    actor: Actor,
    product_id: int) -> Tuple[ProductAvailability, List[InventoryTransaction]]:
    authorize(actor, WAREHOUSE_STAFF, "view inventory")
    availability = await derive_availability(db, product_id)
    transactions = await list_inventory_transactions(db, actor, product_id=product_id)
    return availability, transactions
