"""Purchase order API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from oms.core.deps import get_db, get_current_actor
from oms.core.permissions import Actor
from oms.db.session import transaction
from oms.models.purchase_order import PurchaseOrder
from oms.schemas.purchase_order import (
    PurchaseOrderCommentCreate, PurchaseOrderCommentResponse, PurchaseOrderCreate,
    PurchaseOrderItemResponse, PurchaseOrderReject, PurchaseOrderResponse, PurchaseOrderUpdate,
)
from oms.services import purchase_orders as po_service

router = APIRouter()


def build_po_response(po: PurchaseOrder) -> PurchaseOrderResponse:
    return PurchaseOrderResponse(
        id=po.id,
        po_number=po.po_number,
        supplier_name=po.supplier_name,
        total_amount=float(po.total_amount or 0),
        status=po.status,
        status_display=po.status_display,
        rejection_reason=po.rejection_reason,
        created_by=po.created_by,
        approved_by=po.approved_by,
        approved_at=po.approved_at,
        items=[
            PurchaseOrderItemResponse(
                line_no=i.line_no,
                product_ref=i.product_ref,
                product_name=i.product_name,
                requested_quantity=i.requested_quantity,
                unit_price=float(i.unit_price),
                total_price=float(i.total_price),
            )
            for i in po.items
        ],
        comments=[PurchaseOrderCommentResponse.model_validate(c) for c in po.comments],
        created_at=po.created_at,
        updated_at=po.updated_at,
    )


@router.get("/", response_model=List[PurchaseOrderResponse])
async def list_purchase_orders(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    status: Optional[str] = Query(None)) -> Any:
    pos = await po_service.list_purchase_orders(db, actor, status=status)
    return [build_po_response(po) for po in pos]


@router.post("/", response_model=PurchaseOrderResponse)
async def create_purchase_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_in: PurchaseOrderCreate) -> Any:
    async with transaction(db):
        po = await po_service.create_purchase_order(db, actor, po_in)
    return build_po_response(po)


@router.get("/{po_id}", response_model=PurchaseOrderResponse)
async def get_purchase_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_id: int) -> Any:
    po = await po_service.get_purchase_order(db, actor, po_id)
    return build_po_response(po)


@router.put("/{po_id}", response_model=PurchaseOrderResponse)
async def update_purchase_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_id: int,
    po_in: PurchaseOrderUpdate) -> Any:
    async with transaction(db):
        po = await po_service.update_purchase_order(db, actor, po_id, po_in)
    return build_po_response(po)


@router.post("/{po_id}/submit", response_model=PurchaseOrderResponse)
async def submit_purchase_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_id: int) -> Any:
    async with transaction(db):
        po = await po_service.submit_purchase_order(db, actor, po_id)
    return build_po_response(po)


@router.post("/{po_id}/approve", response_model=PurchaseOrderResponse)
async def approve_purchase_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_id: int) -> Any:
    async with transaction(db):
        po = await po_service.approve_purchase_order(db, actor, po_id)
    return build_po_response(po)


@router.post("/{po_id}/reject", response_model=PurchaseOrderResponse)
async def reject_purchase_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_id: int,
    reject_in: PurchaseOrderReject) -> Any:
    async with transaction(db):
        po = await po_service.reject_purchase_order(db, actor, po_id, reject_in.reason)
    return build_po_response(po)


@router.post("/{po_id}/send", response_model=PurchaseOrderResponse)
async def send_purchase_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_id: int) -> Any:
    async with transaction(db):
        po = await po_service.mark_purchase_order_sent(db, actor, po_id)
    return build_po_response(po)


@router.post("/{po_id}/cancel", response_model=PurchaseOrderResponse)
async def cancel_purchase_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_id: int) -> Any:
    async with transaction(db):
        po = await po_service.cancel_purchase_order(db, actor, po_id)
    return build_po_response(po)


@router.post("/{po_id}/comments", response_model=PurchaseOrderResponse)
async def add_purchase_order_comment(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_id: int,
    comment_in: PurchaseOrderCommentCreate) -> Any:
    async with transaction(db):
        po = await po_service.add_purchase_order_comment(db, actor, po_id, comment_in.comment)
    return build_po_response(po)


@router.delete("/{po_id}")
async def delete_purchase_order(
    *,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    po_id: int) -> Any:
    async with transaction(db):
        await po_service.delete_purchase_order(db, actor, po_id)
    return {"message": "Purchase order deleted"}
