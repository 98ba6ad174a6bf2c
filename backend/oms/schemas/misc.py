"""Notification, delivery voucher, profile and audit log schemas"""
from typing import Optional, List, Any, Literal
from pydantic import BaseModel, Field
from datetime import datetime


# ===== Notifications =====
class NotificationResponse(BaseModel):
    id: int
    user_id: int
    order_id: Optional[int] = None
    order_number: Optional[str] = None
    type: str
    title: str
    message: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    count: int


# ===== Delivery vouchers =====
class DeliveryVoucherItemResponse(BaseModel):
    line_no: int
    product_ref: str
    product_name: str
    quantity: int

    class Config:
        from_attributes = True


class DeliveryVoucherResponse(BaseModel):
    id: int
    voucher_number: str
    order_id: int
    order_number: str
    customer_name: str
    created_by: int
    created_at: datetime
    items: List[DeliveryVoucherItemResponse] = []

    class Config:
        from_attributes = True


# ===== Profiles =====
class ProfileUpsert(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=100, description="External principal id")
    email: str = Field(..., min_length=3, max_length=200)
    name: str = Field(..., min_length=1, max_length=100)
    role: Literal["sales", "accountant", "warehouse_manager", "shipper", "admin"] = "sales"


class ProfileResponse(BaseModel):
    id: int
    user_id: str
    email: str
    name: str
    role: str
    role_display: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== Audit log =====
class FieldChange(BaseModel):
    """One changed field of an audited record"""
    field: str
    old: Optional[Any] = None
    new: Optional[Any] = None


class AuditLogResponse(BaseModel):
    id: int
    user_id: int
    user_name: str
    action: str
    action_display: str
    resource_type: str
    resource_id: Optional[int] = None
    resource_name: Optional[str] = None
    changes: List[FieldChange] = []
    created_at: datetime

    class Config:
        from_attributes = True
