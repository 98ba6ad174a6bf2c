"""Purchase order schemas"""
from typing import Optional, List
from pydantic import BaseModel, Field, validator
from datetime import datetime
from decimal import Decimal


class PurchaseOrderItemCreate(BaseModel):
    product_ref: str = Field(..., min_length=1, max_length=50, description="Product id or code")
    product_name: str = Field(..., min_length=1, max_length=200)
    requested_quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)

    @validator("product_ref", pre=True)
    def coerce_product_ref(cls, v):
        if isinstance(v, int):
            return str(v)
        return v


class PurchaseOrderCreate(BaseModel):
    supplier_name: str = Field(..., min_length=1, max_length=200)
    items: List[PurchaseOrderItemCreate] = Field(..., min_length=1)
    po_number: Optional[str] = Field(None, min_length=1, max_length=50, description="Generated when omitted")


class PurchaseOrderUpdate(BaseModel):
    """Only allowed while the PO is a draft"""
    supplier_name: Optional[str] = Field(None, min_length=1, max_length=200)
    items: Optional[List[PurchaseOrderItemCreate]] = Field(None, min_length=1)


class PurchaseOrderReject(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class PurchaseOrderCommentCreate(BaseModel):
    comment: str = Field(..., min_length=1, max_length=2000)


class PurchaseOrderItemResponse(BaseModel):
    line_no: int
    product_ref: str
    product_name: str
    requested_quantity: int
    unit_price: float
    total_price: float

    class Config:
        from_attributes = True


class PurchaseOrderCommentResponse(BaseModel):
    id: int
    user_id: int
    user_name: str
    comment: str
    created_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderResponse(BaseModel):
    id: int
    po_number: str
    supplier_name: str
    total_amount: float
    status: str
    status_display: str
    rejection_reason: Optional[str] = None
    created_by: int
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    items: List[PurchaseOrderItemResponse] = []
    comments: List[PurchaseOrderCommentResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
