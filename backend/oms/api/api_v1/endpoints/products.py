"""Product catalogue API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.deps import get_db, get_current_actor
from oms.core.permissions import Actor
from oms.db.session import transaction
from oms.models.product import Product
from oms.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from oms.services import products as product_service

router = APIRouter()


def build_product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        product_code=product.product_code,
        product_name=product.product_name,
        unit_price=float(product.unit_price or 0),
        stock_quantity=product.stock_quantity,
        status=product.status,
        status_display=product.status_display,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


@router.get("/", response_model=List[ProductResponse])
async def list_products(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    status: Optional[str] = Query(None)) -> Any:
    products = await product_service.list_products(db, status=status)
    return [build_product_response(p) for p in products]


@router.post("/", response_model=ProductResponse)
async def create_product(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    product_in: ProductCreate) -> Any:
    async with transaction(db):
        product = await product_service.create_product(db, actor, product_in)
    return build_product_response(product)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    product_id: int) -> Any:
    product = await product_service.get_product(db, product_id)
    return build_product_response(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    product_id: int,
    product_in: ProductUpdate) -> Any:
    async with transaction(db):
        product = await product_service.update_product(db, actor, product_id, product_in)
    return build_product_response(product)


@router.delete("/{product_id}")
async def delete_product(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    product_id: int) -> Any:
    async with transaction(db):
        await product_service.delete_product(db, actor, product_id)
    return {"message": "Product deleted"}
