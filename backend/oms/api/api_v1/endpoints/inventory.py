"""Inventory batches, ledger transactions and stock availability"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.deps import get_db, get_current_actor
from oms.core.permissions import Actor
from oms.db.session import transaction
from oms.models.inventory import InventoryBatch
from oms.schemas.inventory import (
    InventoryAdjust, InventoryBatchCreate, InventoryBatchResponse, InventoryBatchUpdate,
    InventoryTransactionResponse, ProductAvailability, ProductStockMovements,
)
from oms.services import inventory as inventory_service

router = APIRouter()


def build_batch_response(batch: InventoryBatch) -> InventoryBatchResponse:
    return InventoryBatchResponse.model_validate(batch)


# ===== Batches =====

@router.get("/batches", response_model=List[InventoryBatchResponse])
async def list_batches(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    status: Optional[str] = Query(None),
    product_id: Optional[int] = Query(None)) -> Any:
    batches = await inventory_service.list_inventory_batches(db, actor, status=status, product_id=product_id)
    return [build_batch_response(b) for b in batches]


@router.post("/batches", response_model=InventoryBatchResponse)
async def create_batch(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    batch_in: InventoryBatchCreate) -> Any:
    """Receive a batch into stock"""
    async with transaction(db):
        batch = await inventory_service.create_inventory_batch(db, actor, batch_in)
    return build_batch_response(batch)


@router.post("/batches/expire", response_model=List[InventoryBatchResponse])
async def expire_batches_now(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)) -> Any:
    """Run the expiry sweep now instead of waiting for the scheduled job"""
    async with transaction(db):
        batches = await inventory_service.run_expiry_sweep(db, actor)
    return [build_batch_response(b) for b in batches]


@router.get("/batches/by-number/{batch_number}", response_model=InventoryBatchResponse)
async def get_batch_by_number(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    batch_number: str) -> Any:
    batch = await inventory_service.get_batch_by_number(db, actor, batch_number)
    return build_batch_response(batch)


@router.get("/batches/by-product/{product_id}", response_model=List[InventoryBatchResponse])
async def list_batches_by_product(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    product_id: int,
    available_only: bool = Query(False)) -> Any:
    batches = await inventory_service.list_batches_by_product(db, actor, product_id, available_only=available_only)
    return [build_batch_response(b) for b in batches]


@router.put("/batches/{batch_id}", response_model=InventoryBatchResponse)
async def update_batch(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    batch_id: int,
    batch_in: InventoryBatchUpdate) -> Any:
    async with transaction(db):
        batch = await inventory_service.update_inventory_batch(db, actor, batch_id, batch_in)
    return build_batch_response(batch)


@router.post("/batches/{batch_id}/adjust", response_model=InventoryBatchResponse)
async def adjust_batch(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    batch_id: int,
    adjust_in: InventoryAdjust) -> Any:
    """Signed quantity change (adjust / damage / expire / return)"""
    async with transaction(db):
        batch = await inventory_service.adjust_inventory_quantity(
            db, actor, batch_id, adjust_in.quantity, adjust_in.transaction_type, adjust_in.notes
        )
    return build_batch_response(batch)


@router.delete("/batches/{batch_id}")
async def delete_batch(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    batch_id: int) -> Any:
    async with transaction(db):
        await inventory_service.delete_inventory_batch(db, actor, batch_id)
    return {"message": "Batch deleted"}


# ===== Ledger =====

@router.get("/transactions", response_model=List[InventoryTransactionResponse])
async def list_transactions(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    batch_id: Optional[int] = Query(None),
    product_id: Optional[int] = Query(None),
    limit: int = Query(inventory_service.TRANSACTION_LIST_LIMIT, ge=1, le=2000)) -> Any:
    transactions = await inventory_service.list_inventory_transactions(
        db, actor, batch_id=batch_id, product_id=product_id, limit=limit
    )
    return [InventoryTransactionResponse.model_validate(t) for t in transactions]


# ===== Availability =====

@router.get("/products", response_model=List[ProductAvailability])
async def active_products_with_stock(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor)) -> Any:
    return await inventory_service.get_active_products_with_stock(db, actor)


@router.get("/products/{product_id}/availability", response_model=ProductAvailability)
async def product_availability(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    product_id: int) -> Any:
    return await inventory_service.derive_availability(db, product_id)


@router.get("/products/{product_id}/movements", response_model=ProductStockMovements)
async def product_movements(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    product_id: int) -> Any:
    availability, transactions = await inventory_service.get_product_stock_movements(db, actor, product_id)
    return ProductStockMovements(
        availability=availability,
        transactions=[InventoryTransactionResponse.model_validate(t) for t in transactions],
    )
