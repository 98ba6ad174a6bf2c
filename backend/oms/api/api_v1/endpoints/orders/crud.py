"""Order creation, queries and comments"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.deps import get_db, get_current_actor
from oms.core.permissions import Actor
from oms.db.session import transaction
from oms.schemas.misc import DeliveryVoucherResponse
from oms.schemas.order import OrderCreate, OrderCommentCreate, OrderListResponse, OrderResponse
from oms.services import orders as order_service
from oms.services.delivery_vouchers import get_vouchers_by_order

from .core import build_order_response

router = APIRouter()


@router.get("/", response_model=OrderListResponse)
async def list_orders(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None)) -> Any:
    """Orders visible to the acting role"""
    orders, total = await order_service.list_orders(db, actor, status=status, page=page, limit=limit)
    return OrderListResponse(
        data=[build_order_response(o) for o in orders],
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=OrderResponse)
async def create_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_in: OrderCreate) -> Any:
    async with transaction(db):
        order = await order_service.create_order(db, actor, order_in)
    return build_order_response(order)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int) -> Any:
    order = await order_service.get_order(db, actor, order_id)
    return build_order_response(order)


@router.post("/{order_id}/comments", response_model=OrderResponse)
async def add_order_comment(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int,
    comment_in: OrderCommentCreate) -> Any:
    async with transaction(db):
        order = await order_service.add_order_comment(db, actor, order_id, comment_in.comment)
    return build_order_response(order)


@router.get("/{order_id}/vouchers", response_model=List[DeliveryVoucherResponse])
async def list_order_vouchers(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int) -> Any:
    vouchers = await get_vouchers_by_order(db, actor, order_id)
    return [DeliveryVoucherResponse.model_validate(v) for v in vouchers]
