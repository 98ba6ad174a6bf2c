"""
Product catalogue

Order lines reference a product either by id or, on legacy records, by its
code. lookup_product_by_id_or_code() makes both paths explicit and returns
Resolved or Unresolved instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.exceptions import InvalidState, ProductNotFound, UniquenessViolation
from oms.core.permissions import Actor, authorize, WAREHOUSE_STAFF, ADMIN_ONLY
from oms.models.inventory import InventoryBatch
from oms.models.product import Product
from oms.schemas.product import ProductCreate, ProductUpdate
from oms.services.audit import apply_changes, create_audit_log, snapshot_changes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolved:
    product: Product
    matched_by: str  # "id" or "code"


@dataclass(frozen=True)
class Unresolved:
    ref: str


ProductResolution = Union[Resolved, Unresolved]


async def _first_product(db: AsyncSession, stmt, for_update: bool) -> Optional[Product]:
    if for_update:
        # FOR UPDATE is dropped by dialects without row locks (SQLite relies on BEGIN IMMEDIATE)
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def lookup_product_by_id_or_code(
    db: AsyncSession,
    ref: Union[str, int],
    for_update: bool = False) -> ProductResolution:
    """Id lookup first for numeric refs, then product code lookup"""
    ref = str(ref).strip()
    if ref.isdigit():
        product = await _first_product(db, select(Product).where(Product.id == int(ref)), for_update)
        if product:
            return Resolved(product, "id")
    product = await _first_product(db, select(Product).where(Product.product_code == ref), for_update)
    if product:
        return Resolved(product, "code")
    return Unresolved(ref)


async def get_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise ProductNotFound()
    return product


async def list_products(db: AsyncSession, status: Optional[str] = None) -> List[Product]:
    query = select(Product)
    if status:
        query = query.where(Product.status == status)
    result = await db.execute(query.order_by(Product.product_code))
    return list(result.scalars().all())


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: Optional[int] = None) -> None:
    query = select(Product.id).where(Product.product_code == code)
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    if (await db.execute(query)).first():
        raise UniquenessViolation("Product code already exists")


async def create_product(db: AsyncSession, actor: Actor, data: ProductCreate) -> Product:
    """New products start with zero stock; stock only enters through batches"""
    authorize(actor, WAREHOUSE_STAFF, "create products")
    await _ensure_code_free(db, data.product_code)

    product = Product(
        product_code=data.product_code,
        product_name=data.product_name,
        unit_price=data.unit_price,
        stock_quantity=0,
        status=data.status,
        created_by=actor.id,
        updated_by=actor.id,
    )
    db.add(product)
    await db.flush()

    create_audit_log(
        db, actor, "create", "product",
        resource_id=product.id,
        resource_name=product.product_code,
        changes=snapshot_changes(data.model_dump()),
    )
    logger.info(f"Product created: {product.product_code} by {actor.name}")
    return product


async def update_product(db: AsyncSession, actor: Actor, product_id: int, data: ProductUpdate) -> Product:
    authorize(actor, WAREHOUSE_STAFF, "update products")
    product = await get_product(db, product_id)

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if "product_code" in update_data and update_data["product_code"] != product.product_code:
        await _ensure_code_free(db, update_data["product_code"], exclude_id=product.id)

    changes = apply_changes(product, update_data)
    if changes:
        product.updated_by = actor.id
        create_audit_log(
            db, actor, "update", "product",
            resource_id=product.id,
            resource_name=product.product_code,
            changes=changes,
        )
    return product


async def delete_product(db: AsyncSession, actor: Actor, product_id: int) -> None:
    authorize(actor, ADMIN_ONLY, "delete products")
    product = await get_product(db, product_id)

    batch_count = (await db.execute(
        select(func.count(InventoryBatch.id)).where(InventoryBatch.product_id == product.id)
    )).scalar()
    if batch_count:
        raise InvalidState(f"Product {product.product_code} still has {batch_count} inventory batch(es)")

    create_audit_log(
        db, actor, "delete", "product",
        resource_id=product.id,
        resource_name=product.product_code,
        changes=snapshot_changes({
            "product_code": product.product_code,
            "product_name": product.product_name,
            "unit_price": product.unit_price,
        }, removed=True),
    )
    await db.delete(product)
    logger.info(f"Product deleted: {product.product_code} by {actor.name}")
