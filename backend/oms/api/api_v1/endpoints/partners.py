"""Customer and supplier API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.deps import get_db, get_current_actor
from oms.core.permissions import Actor
from oms.db.session import transaction
from oms.schemas.partner import (
    CustomerCreate, CustomerResponse, CustomerUpdate,
    SupplierCreate, SupplierResponse, SupplierUpdate,
)
from oms.services import partners as partner_service

customers_router = APIRouter()
suppliers_router = APIRouter()


# ===== Customers =====

@customers_router.get("/", response_model=List[CustomerResponse])
async def list_customers(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    status: Optional[str] = Query(None)) -> Any:
    return await partner_service.list_customers(db, status=status)


@customers_router.post("/", response_model=CustomerResponse)
async def create_customer(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    customer_in: CustomerCreate) -> Any:
    async with transaction(db):
        customer = await partner_service.create_customer(db, actor, customer_in)
    return customer


@customers_router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    customer_id: int,
    customer_in: CustomerUpdate) -> Any:
    async with transaction(db):
        customer = await partner_service.update_customer(db, actor, customer_id, customer_in)
    return customer


# ===== Suppliers =====

@suppliers_router.get("/", response_model=List[SupplierResponse])
async def list_suppliers(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    status: Optional[str] = Query(None)) -> Any:
    return await partner_service.list_suppliers(db, status=status)


@suppliers_router.post("/", response_model=SupplierResponse)
async def create_supplier(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    supplier_in: SupplierCreate) -> Any:
    async with transaction(db):
        supplier = await partner_service.create_supplier(db, actor, supplier_in)
    return supplier


@suppliers_router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    supplier_id: int,
    supplier_in: SupplierUpdate) -> Any:
    async with transaction(db):
        supplier = await partner_service.update_supplier(db, actor, supplier_id, supplier_in)
    return supplier
