"""
Customers and suppliers
Only the fields the order core and the uniqueness rules need
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from oms.db.base import Base


class Customer(Base):
    """Customer company"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String(200), nullable=False, index=True, comment="Company name")
    tax_code = Column(String(50), unique=True, nullable=False, index=True, comment="Tax code")
    address = Column(String(500), nullable=False, comment="Address")
    shipping_address = Column(String(500), comment="Default shipping address")
    invoice_address = Column(String(500), comment="Invoice address")
    region = Column(String(100), comment="Region")
    status = Column(String(20), nullable=False, default="active", index=True, comment="active/inactive")

    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    updated_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Customer {self.tax_code}: {self.company_name}>"


class Supplier(Base):
    """Supplier company"""
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String(200), nullable=False, index=True, comment="Company name")
    tax_code = Column(String(50), unique=True, nullable=False, index=True, comment="Tax code")
    address = Column(String(500), nullable=False, comment="Address")
    contact_name = Column(String(100), nullable=False, comment="Contact name")
    contact_phone = Column(String(50), nullable=False, comment="Contact phone")
    contact_email = Column(String(200), comment="Contact email")
    region = Column(String(100), comment="Region")
    status = Column(String(20), nullable=False, default="active", index=True, comment="active/inactive")

    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    updated_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Supplier {self.tax_code}: {self.company_name}>"
