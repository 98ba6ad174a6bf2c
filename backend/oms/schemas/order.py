"""Sales order schemas"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, validator
from datetime import datetime
from decimal import Decimal


# ===== Requests =====
class OrderLineItemCreate(BaseModel):
    """One order line as submitted by sales"""
    product_ref: str = Field(..., min_length=1, max_length=50, description="Product id or product code")
    product_name: str = Field(..., min_length=1, max_length=200, description="Product name")
    quantity: int = Field(..., gt=0, description="Quantity")
    unit_price: Decimal = Field(..., ge=0, description="Unit price")

    @validator("product_ref", pre=True)
    def coerce_product_ref(cls, v):
        # product ids arrive as numbers from most clients
        if isinstance(v, int):
            return str(v)
        return v


class ShippingAddress(BaseModel):
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)


class OrderCreate(BaseModel):
    customer_id: str = Field(..., min_length=1, max_length=50, description="Customer reference")
    customer_name: str = Field(..., min_length=1, max_length=200, description="Customer name")
    items: List[OrderLineItemCreate] = Field(..., min_length=1, description="Order lines")
    shipping_address: ShippingAddress

    @validator("customer_id", pre=True)
    def coerce_customer_id(cls, v):
        if isinstance(v, int):
            return str(v)
        return v


class OrderReasonRequest(BaseModel):
    """Reject / request edit / warehouse reject"""
    reason: str = Field(..., min_length=1, max_length=1000, description="Reason shown to the creator")


class ShippedQuantityEntry(BaseModel):
    product_ref: str = Field(..., min_length=1, max_length=50, description="Product id or code")
    shipped_quantity: int = Field(..., ge=0, description="Quantity handed over")

    @validator("product_ref", pre=True)
    def coerce_product_ref(cls, v):
        if isinstance(v, int):
            return str(v)
        return v


class OrderStatusUpdate(BaseModel):
    status: Literal["shipped", "completed", "partial_complete", "failed", "cancelled"]
    tracking_number: Optional[str] = Field(None, max_length=100, description="Carrier tracking number")
    shipping_quantities: Optional[List[ShippedQuantityEntry]] = Field(None, description="Shipped quantity per product")


class OrderCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class OrderCommentCreate(BaseModel):
    comment: str = Field(..., min_length=1, max_length=2000)


# ===== Responses =====
class OrderItemResponse(BaseModel):
    line_no: int
    product_ref: str
    product_name: str
    quantity: int
    unit_price: float
    total_price: float

    class Config:
        from_attributes = True


class OrderCommentResponse(BaseModel):
    id: int
    user_id: int
    user_name: str
    user_role: str
    comment: str
    created_at: datetime

    class Config:
        from_attributes = True


class ShippedQuantityResponse(BaseModel):
    product_ref: str
    shipped_quantity: int

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_number: str
    customer_id: str
    customer_name: str
    total_amount: float
    status: str
    status_display: str
    created_by: int
    assigned_accountant: Optional[int] = None
    assigned_warehouse_manager: Optional[int] = None
    assigned_shipper: Optional[int] = None
    shipping_address: ShippingAddress
    tracking_number: Optional[str] = None
    items: List[OrderItemResponse] = []
    comments: List[OrderCommentResponse] = []
    shipped_quantities: List[ShippedQuantityResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderListResponse(BaseModel):
    data: List[OrderResponse]
    total: int
    page: int
    limit: int
