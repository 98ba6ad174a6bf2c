"""
Delivery voucher - what was picked for an approved order
Written once, never updated
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from oms.db.base import Base


class DeliveryVoucher(Base):
    __tablename__ = "delivery_vouchers"

    id = Column(Integer, primary_key=True, index=True)
    # DV + yyyymmdd + sequence
    voucher_number = Column(String(50), unique=True, nullable=False, index=True, comment="Voucher number")
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    order_number = Column(String(50), nullable=False, comment="Order number snapshot")
    customer_name = Column(String(200), nullable=False, comment="Customer name snapshot")
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    items = relationship(
        "DeliveryVoucherItem", back_populates="voucher", cascade="all, delete-orphan",
        order_by="DeliveryVoucherItem.line_no", lazy="selectin"
    )

    def __repr__(self):
        return f"<DeliveryVoucher {self.voucher_number} for order {self.order_id}>"


class DeliveryVoucherItem(Base):
    __tablename__ = "delivery_voucher_items"

    id = Column(Integer, primary_key=True, index=True)
    voucher_id = Column(Integer, ForeignKey("delivery_vouchers.id"), nullable=False, index=True)
    line_no = Column(Integer, nullable=False)
    product_ref = Column(String(50), nullable=False)
    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)

    voucher = relationship("DeliveryVoucher", back_populates="items")
