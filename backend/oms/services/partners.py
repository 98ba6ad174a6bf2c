"""
Customers and suppliers

Both are keyed by a unique tax code; every create / update is recorded in
the audit log with the list of changed fields.
"""

import logging
from typing import List, Optional, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.exceptions import CustomerNotFound, SupplierNotFound, UniquenessViolation
from oms.core.permissions import Actor, authorize, PARTNER_MANAGERS
from oms.models.partner import Customer, Supplier
from oms.schemas.partner import CustomerCreate, CustomerUpdate, SupplierCreate, SupplierUpdate
from oms.services.audit import apply_changes, create_audit_log, snapshot_changes

logger = logging.getLogger(__name__)


async def _ensure_tax_code_free(
    db: AsyncSession,
    model: Type,
    tax_code: str,
    exclude_id: Optional[int] = None) -> None:
    query = select(model.id).where(model.tax_code == tax_code)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    if (await db.execute(query)).first():
        label = "Customer" if model is Customer else "Supplier"
        raise UniquenessViolation(f"{label} with tax code {tax_code} already exists")


# ===== Customers =====

async def list_customers(db: AsyncSession, status: Optional[str] = None) -> List[Customer]:
    query = select(Customer)
    if status:
        query = query.where(Customer.status == status)
    result = await db.execute(query.order_by(Customer.company_name))
    return list(result.scalars().all())


async def create_customer(db: AsyncSession, actor: Actor, data: CustomerCreate) -> Customer:
    authorize(actor, PARTNER_MANAGERS, "manage customers")
    await _ensure_tax_code_free(db, Customer, data.tax_code)

    customer = Customer(**data.model_dump(), created_by=actor.id, updated_by=actor.id)
    db.add(customer)
    await db.flush()

    create_audit_log(
        db, actor, "create", "customer",
        resource_id=customer.id,
        resource_name=customer.company_name,
        changes=snapshot_changes(data.model_dump(exclude_none=True)),
    )
    logger.info(f"Customer created: {customer.tax_code} {customer.company_name}")
    return customer


async def update_customer(db: AsyncSession, actor: Actor, customer_id: int, data: CustomerUpdate) -> Customer:
    authorize(actor, PARTNER_MANAGERS, "manage customers")
    customer = await db.get(Customer, customer_id)
    if not customer:
        raise CustomerNotFound()

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if update_data.get("tax_code") and update_data["tax_code"] != customer.tax_code:
        await _ensure_tax_code_free(db, Customer, update_data["tax_code"], exclude_id=customer.id)

    changes = apply_changes(customer, update_data)
    if changes:
        customer.updated_by = actor.id
        create_audit_log(
            db, actor, "update", "customer",
            resource_id=customer.id,
            resource_name=customer.company_name,
            changes=changes,
        )
    return customer


# ===== Suppliers =====

async def list_suppliers(db: AsyncSession, status: Optional[str] = None) -> List[Supplier]:
    query = select(Supplier)
    if status:
        query = query.where(Supplier.status == status)
    result = await db.execute(query.order_by(Supplier.company_name))
    return list(result.scalars().all())


async def create_supplier(db: AsyncSession, actor: Actor, data: SupplierCreate) -> Supplier:
    authorize(actor, PARTNER_MANAGERS, "manage suppliers")
    await _ensure_tax_code_free(db, Supplier, data.tax_code)

    supplier = Supplier(**data.model_dump(), created_by=actor.id, updated_by=actor.id)
    db.add(supplier)
    await db.flush()

    create_audit_log(
        db, actor, "create", "supplier",
        resource_id=supplier.id,
        resource_name=supplier.company_name,
        changes=snapshot_changes(data.model_dump(exclude_none=True)),
    )
    logger.info(f"Supplier created: {supplier.tax_code} {supplier.company_name}")
    return supplier


async def update_supplier(db: AsyncSession, actor: Actor, supplier_id: int, data: SupplierUpdate) -> Supplier:
    authorize(actor, PARTNER_MANAGERS, "manage suppliers")
    supplier = await db.get(Supplier, supplier_id)
    if not supplier:
        raise SupplierNotFound()

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    if update_data.get("tax_code") and update_data["tax_code"] != supplier.tax_code:
        await _ensure_tax_code_free(db, Supplier, update_data["tax_code"], exclude_id=supplier.id)

    changes = apply_changes(supplier, update_data)
    if changes:
        supplier.updated_by = actor.id
        create_audit_log(
            db, actor, "update", "supplier",
            resource_id=supplier.id,
            resource_name=supplier.company_name,
            changes=changes,
        )
    return supplier
