"""Inventory ledger schemas"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, validator
from datetime import datetime


# ===== Batches =====
class InventoryBatchCreate(BaseModel):
    """Receive a batch"""
    product_id: int = Field(..., description="Product ID")
    batch_number: str = Field(..., min_length=1, max_length=100, description="Batch number, unique")
    quantity: int = Field(..., gt=0, description="Received quantity")
    received_date: datetime = Field(..., description="Received date")
    expiry_date: Optional[datetime] = Field(None, description="Expiry date")
    manufacture_date: Optional[datetime] = Field(None, description="Manufacture date")
    supplier_name: Optional[str] = Field(None, max_length=200, description="Supplier")
    purchase_order_id: Optional[int] = Field(None, description="Purchase order the goods arrived for")
    location: Optional[str] = Field(None, max_length=100, description="Storage location")
    notes: Optional[str] = Field(None, max_length=500, description="Notes")


class InventoryBatchUpdate(BaseModel):
    """Update a batch; a changed quantity is booked as an adjustment"""
    quantity: Optional[int] = Field(None, ge=0, description="New quantity")
    expiry_date: Optional[datetime] = None
    manufacture_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)
    status: Optional[Literal["available", "reserved", "expired", "damaged"]] = None


class InventoryAdjust(BaseModel):
    """Signed quantity change on one batch"""
    quantity: int = Field(..., description="Signed delta, negative removes stock")
    transaction_type: Literal["adjust", "damage", "expire", "return"] = Field(..., description="Movement type")
    notes: Optional[str] = Field(None, max_length=500)

    @validator("quantity")
    def non_zero(cls, v):
        if v == 0:
            raise ValueError("Adjustment quantity cannot be zero")
        return v


class InventoryBatchResponse(BaseModel):
    id: int
    product_id: int
    product_code: str
    product_name: str
    batch_number: str
    quantity: int
    received_date: datetime
    expiry_date: Optional[datetime] = None
    manufacture_date: Optional[datetime] = None
    supplier_name: Optional[str] = None
    purchase_order_id: Optional[int] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    status: str
    status_display: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== Transactions =====
class InventoryTransactionResponse(BaseModel):
    id: int
    batch_id: Optional[int] = None
    batch_number: Optional[str] = None
    product_id: int
    transaction_type: str
    type_display: str
    quantity: int
    order_id: Optional[int] = None
    purchase_order_id: Optional[int] = None
    notes: Optional[str] = None
    performed_by: int
    performed_by_name: str
    timestamp: datetime

    class Config:
        from_attributes = True


# ===== Availability =====
class ProductAvailability(BaseModel):
    product_id: int
    product_code: str
    product_name: str
    stock_quantity: int
    shipped_quantity: int = Field(..., description="Shipped on open orders")
    available: int


class ProductStockMovements(BaseModel):
    availability: ProductAvailability
    transactions: List[InventoryTransactionResponse]
