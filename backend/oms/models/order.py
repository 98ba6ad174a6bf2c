"""
Sales order model

Lifecycle:
pending → approved → warehouse_confirmed → shipped → completed / partial_complete / failed
side branches: pending → rejected, pending → edit_requested, approved → warehouse_rejected
cancelled is reachable administratively

Line items keep a snapshot of name / quantity / price taken when the order is
created; total_amount is computed once and never recalculated.
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, CheckConstraint
from sqlalchemy.orm import relationship

from oms.db.base import Base


PENDING = "pending"
APPROVED = "approved"
EDIT_REQUESTED = "edit_requested"
REJECTED = "rejected"
WAREHOUSE_CONFIRMED = "warehouse_confirmed"
WAREHOUSE_REJECTED = "warehouse_rejected"
SHIPPED = "shipped"
COMPLETED = "completed"
PARTIAL_COMPLETE = "partial_complete"
FAILED = "failed"
CANCELLED = "cancelled"

ORDER_STATUSES = (
    PENDING, APPROVED, EDIT_REQUESTED, REJECTED, WAREHOUSE_CONFIRMED, WAREHOUSE_REJECTED,
    SHIPPED, COMPLETED, PARTIAL_COMPLETE, FAILED, CANCELLED,
)
TERMINAL_STATUSES = (COMPLETED, PARTIAL_COMPLETE, FAILED, CANCELLED, REJECTED)

# approval took the stock out of products.stock_quantity but the goods are still in the warehouse
STOCK_COMMITTED_STATUSES = (APPROVED, WAREHOUSE_CONFIRMED)


class Order(Base):
    """Sales order"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)

    # SO + yyyymmdd + sequence, e.g. SO20260105001
    order_number = Column(String(50), unique=True, nullable=False, index=True, comment="Order number")

    customer_id = Column(String(50), nullable=False, index=True, comment="Customer reference")
    customer_name = Column(String(200), nullable=False, comment="Customer name snapshot")

    total_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Order total")

    status = Column(String(30), nullable=False, default=PENDING, index=True, comment="Status")

    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    assigned_accountant = Column(Integer, ForeignKey("profiles.id"), comment="Reviewing accountant")
    assigned_warehouse_manager = Column(Integer, ForeignKey("profiles.id"), comment="Confirming warehouse manager")
    assigned_shipper = Column(Integer, ForeignKey("profiles.id"), comment="Shipper")

    # shipping address
    shipping_street = Column(String(200), nullable=False, comment="Street")
    shipping_city = Column(String(100), nullable=False, comment="City")
    shipping_state = Column(String(100), nullable=False, comment="State")
    shipping_zip_code = Column(String(20), nullable=False, comment="Zip code")
    shipping_country = Column(String(100), nullable=False, comment="Country")

    tracking_number = Column(String(100), comment="Carrier tracking number")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("Profile", foreign_keys=[created_by])
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderItem.line_no", lazy="selectin"
    )
    comments = relationship(
        "OrderComment", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderComment.id", lazy="selectin"
    )
    shipped_quantities = relationship(
        "OrderShippedQuantity", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderShippedQuantity.id", lazy="selectin"
    )

    def __repr__(self):
        return f"<Order {self.order_number} ({self.status})>"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def status_display(self) -> str:
        status_map = {
            PENDING: "Pending approval",
            APPROVED: "Approved",
            EDIT_REQUESTED: "Edit requested",
            REJECTED: "Rejected",
            WAREHOUSE_CONFIRMED: "Warehouse confirmed",
            WAREHOUSE_REJECTED: "Warehouse rejected",
            SHIPPED: "Shipped",
            COMPLETED: "Completed",
            PARTIAL_COMPLETE: "Partially completed",
            FAILED: "Failed",
            CANCELLED: "Cancelled",
        }
        return status_map.get(self.status, self.status)


class OrderItem(Base):
    """Order line - snapshot taken at order time"""
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    line_no = Column(Integer, nullable=False, comment="Line number")

    # product id, or the product code on legacy records
    product_ref = Column(String(50), nullable=False, index=True, comment="Product id or code")
    product_name = Column(String(200), nullable=False, comment="Product name snapshot")
    quantity = Column(Integer, nullable=False, comment="Quantity")
    unit_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit price snapshot")
    # quantity × unit_price
    total_price = Column(DECIMAL(12, 2), nullable=False, comment="Line total")

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.product_ref} x {self.quantity} @ {self.unit_price}>"


class OrderComment(Base):
    """Append-only comment log entry"""
    __tablename__ = "order_comments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    user_name = Column(String(100), nullable=False, comment="Author name snapshot")
    user_role = Column(String(30), nullable=False, comment="Author role snapshot")
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="comments")

    def __repr__(self):
        return f"<OrderComment {self.order_id} by {self.user_name}>"


class OrderShippedQuantity(Base):
    """Quantity actually handed over for one product of the order"""
    __tablename__ = "order_shipped_quantities"
    __table_args__ = (
        CheckConstraint("shipped_quantity >= 0", name="ck_shipped_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_ref = Column(String(50), nullable=False, index=True, comment="Product id or code")
    shipped_quantity = Column(Integer, nullable=False, comment="Shipped quantity")

    order = relationship("Order", back_populates="shipped_quantities")

    def __repr__(self):
        return f"<OrderShippedQuantity {self.order_id}:{self.product_ref} = {self.shipped_quantity}>"
