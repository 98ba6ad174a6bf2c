"""
Purchase order model

draft → pending_approval → approved → sent_to_supplier → partially_received → completed
cancelled from any non terminal status; rejection sends the PO back to draft
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, CheckConstraint
from sqlalchemy.orm import relationship

from oms.db.base import Base


PO_DRAFT = "draft"
PO_PENDING_APPROVAL = "pending_approval"
PO_APPROVED = "approved"
PO_SENT_TO_SUPPLIER = "sent_to_supplier"
PO_PARTIALLY_RECEIVED = "partially_received"
PO_COMPLETED = "completed"
PO_CANCELLED = "cancelled"

PO_STATUSES = (
    PO_DRAFT, PO_PENDING_APPROVAL, PO_APPROVED, PO_SENT_TO_SUPPLIER,
    PO_PARTIALLY_RECEIVED, PO_COMPLETED, PO_CANCELLED,
)
PO_TERMINAL_STATUSES = (PO_COMPLETED, PO_CANCELLED)
# statuses in which goods can be received against the PO
PO_RECEIVABLE_STATUSES = (PO_APPROVED, PO_SENT_TO_SUPPLIER, PO_PARTIALLY_RECEIVED)


class PurchaseOrder(Base):
    """Purchase order"""
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, index=True)
    po_number = Column(String(50), unique=True, nullable=False, index=True, comment="PO number")
    supplier_name = Column(String(200), nullable=False, comment="Supplier")
    total_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"), comment="Total")
    status = Column(String(30), nullable=False, default=PO_DRAFT, index=True, comment="Status")
    rejection_reason = Column(Text, comment="Reason of the last rejection")

    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    approved_by = Column(Integer, ForeignKey("profiles.id"), comment="Approver")
    approved_at = Column(DateTime, comment="Approved at")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "PurchaseOrderItem", back_populates="purchase_order", cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.line_no", lazy="selectin"
    )
    comments = relationship(
        "PurchaseOrderComment", back_populates="purchase_order", cascade="all, delete-orphan",
        order_by="PurchaseOrderComment.id", lazy="selectin"
    )

    def __repr__(self):
        return f"<PurchaseOrder {self.po_number} ({self.status})>"

    @property
    def status_display(self) -> str:
        status_map = {
            PO_DRAFT: "Draft",
            PO_PENDING_APPROVAL: "Pending approval",
            PO_APPROVED: "Approved",
            PO_SENT_TO_SUPPLIER: "Sent to supplier",
            PO_PARTIALLY_RECEIVED: "Partially received",
            PO_COMPLETED: "Completed",
            PO_CANCELLED: "Cancelled",
        }
        return status_map.get(self.status, self.status)


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"
    __table_args__ = (
        CheckConstraint("requested_quantity > 0", name="ck_po_item_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False, index=True)
    line_no = Column(Integer, nullable=False)
    product_ref = Column(String(50), nullable=False, comment="Product id or code")
    product_name = Column(String(200), nullable=False, comment="Product name snapshot")
    requested_quantity = Column(Integer, nullable=False, comment="Requested quantity")
    unit_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit price")
    total_price = Column(DECIMAL(12, 2), nullable=False, comment="Line total")

    purchase_order = relationship("PurchaseOrder", back_populates="items")


class PurchaseOrderComment(Base):
    __tablename__ = "purchase_order_comments"

    id = Column(Integer, primary_key=True, index=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    user_name = Column(String(100), nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    purchase_order = relationship("PurchaseOrder", back_populates="comments")
