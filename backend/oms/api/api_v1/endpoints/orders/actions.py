"""
Order status changes
Every handler runs one service call inside one transaction
"""

from typing import Any, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.deps import get_db, get_current_actor
from oms.core.permissions import Actor
from oms.db.session import transaction
from oms.schemas.misc import DeliveryVoucherResponse
from oms.schemas.order import OrderCancelRequest, OrderReasonRequest, OrderResponse, OrderStatusUpdate
from oms.services import orders as order_service
from oms.services.delivery_vouchers import create_delivery_voucher

from .core import build_order_response

router = APIRouter()


@router.post("/{order_id}/approve", response_model=OrderResponse)
async def approve_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int) -> Any:
    """Approve a pending order and take its quantities out of stock"""
    async with transaction(db):
        order = await order_service.approve_order(db, actor, order_id)
    return build_order_response(order)


@router.post("/{order_id}/reject", response_model=OrderResponse)
async def reject_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int,
    reason_in: OrderReasonRequest) -> Any:
    async with transaction(db):
        order = await order_service.reject_order(db, actor, order_id, reason_in.reason)
    return build_order_response(order)


@router.post("/{order_id}/request-edit", response_model=OrderResponse)
async def request_edit(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int,
    reason_in: OrderReasonRequest) -> Any:
    async with transaction(db):
        order = await order_service.request_edit(db, actor, order_id, reason_in.reason)
    return build_order_response(order)


@router.post("/{order_id}/confirm-warehouse", response_model=OrderResponse)
async def confirm_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int) -> Any:
    async with transaction(db):
        order = await order_service.confirm_warehouse(db, actor, order_id)
    return build_order_response(order)


@router.post("/{order_id}/reject-warehouse", response_model=OrderResponse)
async def reject_warehouse(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int,
    reason_in: OrderReasonRequest) -> Any:
    async with transaction(db):
        order = await order_service.reject_warehouse(db, actor, order_id, reason_in.reason)
    return build_order_response(order)


@router.post("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int,
    status_in: OrderStatusUpdate) -> Any:
    """Shipping and closing statuses"""
    async with transaction(db):
        order = await order_service.update_order_status(
            db, actor, order_id, status_in.status,
            tracking_number=status_in.tracking_number,
            shipping_quantities=status_in.shipping_quantities,
        )
    return build_order_response(order)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int,
    cancel_in: Optional[OrderCancelRequest] = None) -> Any:
    async with transaction(db):
        order = await order_service.cancel_order(
            db, actor, order_id, reason=cancel_in.reason if cancel_in else None
        )
    return build_order_response(order)


@router.post("/{order_id}/vouchers", response_model=DeliveryVoucherResponse)
async def create_voucher(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    order_id: int) -> Any:
    async with transaction(db):
        voucher = await create_delivery_voucher(db, actor, order_id)
    return DeliveryVoucherResponse.model_validate(voucher)
