"""
Product model
stock_quantity is the single source of truth for on-hand stock and is only
changed through the inventory ledger or order approval
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL, CheckConstraint
from sqlalchemy.orm import relationship

from oms.db.base import Base


class Product(Base):
    """Product"""
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_product_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)

    product_code = Column(String(50), unique=True, nullable=False, index=True, comment="Product code")
    product_name = Column(String(200), nullable=False, comment="Product name")
    unit_price = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Unit price")

    # current on-hand quantity
    stock_quantity = Column(Integer, nullable=False, default=0, comment="Stock quantity")

    # active / inactive
    status = Column(String(20), nullable=False, default="active", index=True, comment="Status")

    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    updated_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("Profile", foreign_keys=[created_by])
    batches = relationship("InventoryBatch", back_populates="product", passive_deletes=True)

    def __repr__(self):
        return f"<Product {self.product_code}: {self.product_name} = {self.stock_quantity}>"

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def status_display(self) -> str:
        status_map = {
            "active": "Active",
            "inactive": "Inactive",
        }
        return status_map.get(self.status, self.status)
