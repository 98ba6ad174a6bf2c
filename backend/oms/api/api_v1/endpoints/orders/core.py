"""Order response building"""

from oms.models.order import Order
from oms.schemas.order import (
    OrderResponse, OrderItemResponse, OrderCommentResponse, ShippedQuantityResponse, ShippingAddress,
)


def build_order_response(order: Order) -> OrderResponse:
    resp = OrderResponse(
        id=order.id,
        order_number=order.order_number,
        customer_id=order.customer_id,
        customer_name=order.customer_name,
        total_amount=float(order.total_amount or 0),
        status=order.status,
        status_display=order.status_display,
        created_by=order.created_by,
        assigned_accountant=order.assigned_accountant,
        assigned_warehouse_manager=order.assigned_warehouse_manager,
        assigned_shipper=order.assigned_shipper,
        shipping_address=ShippingAddress(
            street=order.shipping_street,
            city=order.shipping_city,
            state=order.shipping_state,
            zip_code=order.shipping_zip_code,
            country=order.shipping_country,
        ),
        tracking_number=order.tracking_number,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[],
        comments=[],
        shipped_quantities=[],
    )

    for item in order.items:
        resp.items.append(OrderItemResponse(
            line_no=item.line_no,
            product_ref=item.product_ref,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=float(item.unit_price),
            total_price=float(item.total_price),
        ))

    for comment in order.comments:
        resp.comments.append(OrderCommentResponse(
            id=comment.id,
            user_id=comment.user_id,
            user_name=comment.user_name,
            user_role=comment.user_role,
            comment=comment.comment,
            created_at=comment.created_at,
        ))

    for shipped in order.shipped_quantities:
        resp.shipped_quantities.append(ShippedQuantityResponse(
            product_ref=shipped.product_ref,
            shipped_quantity=shipped.shipped_quantity,
        ))

    return resp
