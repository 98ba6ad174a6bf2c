"""Product schemas"""
from typing import Optional, Literal
from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal


class ProductCreate(BaseModel):
    product_code: str = Field(..., min_length=1, max_length=50, description="Product code, unique")
    product_name: str = Field(..., min_length=1, max_length=200, description="Product name")
    unit_price: Decimal = Field(..., ge=0, description="Unit price")
    status: Literal["active", "inactive"] = "active"


class ProductUpdate(BaseModel):
    """stock_quantity is deliberately absent: stock only moves through the ledger"""
    product_code: Optional[str] = Field(None, min_length=1, max_length=50)
    product_name: Optional[str] = Field(None, min_length=1, max_length=200)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[Literal["active", "inactive"]] = None


class ProductResponse(BaseModel):
    id: int
    product_code: str
    product_name: str
    unit_price: float
    stock_quantity: int
    status: str
    status_display: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
