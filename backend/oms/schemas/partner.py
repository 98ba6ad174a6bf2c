"""Customer / supplier schemas"""
from typing import Optional, Literal
from pydantic import BaseModel, Field
from datetime import datetime


# ===== Customers =====
class CustomerCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    tax_code: str = Field(..., min_length=1, max_length=50, description="Tax code, unique")
    address: str = Field(..., min_length=1, max_length=500)
    shipping_address: Optional[str] = Field(None, max_length=500)
    invoice_address: Optional[str] = Field(None, max_length=500)
    region: Optional[str] = Field(None, max_length=100)
    status: Literal["active", "inactive"] = "active"


class CustomerUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    tax_code: Optional[str] = Field(None, min_length=1, max_length=50)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    shipping_address: Optional[str] = Field(None, max_length=500)
    invoice_address: Optional[str] = Field(None, max_length=500)
    region: Optional[str] = Field(None, max_length=100)
    status: Optional[Literal["active", "inactive"]] = None


class CustomerResponse(BaseModel):
    id: int
    company_name: str
    tax_code: str
    address: str
    shipping_address: Optional[str] = None
    invoice_address: Optional[str] = None
    region: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ===== Suppliers =====
class SupplierCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    tax_code: str = Field(..., min_length=1, max_length=50, description="Tax code, unique")
    address: str = Field(..., min_length=1, max_length=500)
    contact_name: str = Field(..., min_length=1, max_length=100)
    contact_phone: str = Field(..., min_length=1, max_length=50)
    contact_email: Optional[str] = Field(None, max_length=200)
    region: Optional[str] = Field(None, max_length=100)
    status: Literal["active", "inactive"] = "active"


class SupplierUpdate(BaseModel):
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    tax_code: Optional[str] = Field(None, min_length=1, max_length=50)
    address: Optional[str] = Field(None, min_length=1, max_length=500)
    contact_name: Optional[str] = Field(None, min_length=1, max_length=100)
    contact_phone: Optional[str] = Field(None, min_length=1, max_length=50)
    contact_email: Optional[str] = Field(None, max_length=200)
    region: Optional[str] = Field(None, max_length=100)
    status: Optional[Literal["active", "inactive"]] = None


class SupplierResponse(BaseModel):
    id: int
    company_name: str
    tax_code: str
    address: str
    contact_name: str
    contact_phone: str
    contact_email: Optional[str] = None
    region: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
