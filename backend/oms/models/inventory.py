"""
Inventory ledger models

InventoryBatch: one received lot of a product with its own quantity and expiry
InventoryTransaction: append-only record of every stock change

For every product, products.stock_quantity equals the sum of
inventory_transactions.quantity for that product.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from oms.db.base import Base


BATCH_AVAILABLE = "available"
BATCH_RESERVED = "reserved"
BATCH_EXPIRED = "expired"
BATCH_DAMAGED = "damaged"
BATCH_STATUSES = (BATCH_AVAILABLE, BATCH_RESERVED, BATCH_EXPIRED, BATCH_DAMAGED)

TX_RECEIVE = "receive"
TX_SHIP = "ship"
TX_ADJUST = "adjust"
TX_RETURN = "return"
TX_DAMAGE = "damage"
TX_EXPIRE = "expire"
TRANSACTION_TYPES = (TX_RECEIVE, TX_SHIP, TX_ADJUST, TX_RETURN, TX_DAMAGE, TX_EXPIRE)
# types accepted for a manual batch adjustment
ADJUSTMENT_TYPES = (TX_ADJUST, TX_DAMAGE, TX_EXPIRE, TX_RETURN)


class InventoryBatch(Base):
    """Inventory batch - one received lot"""
    __tablename__ = "inventory_batches"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_batch_quantity_non_negative"),
        Index("ix_inventory_batches_product_status", "product_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    # captured when the batch is created
    product_code = Column(String(50), nullable=False, comment="Product code snapshot")
    product_name = Column(String(200), nullable=False, comment="Product name snapshot")

    batch_number = Column(String(100), unique=True, nullable=False, index=True, comment="Batch number")
    quantity = Column(Integer, nullable=False, comment="Current quantity")

    received_date = Column(DateTime, nullable=False, index=True, comment="Received date")
    expiry_date = Column(DateTime, comment="Expiry date")
    manufacture_date = Column(DateTime, comment="Manufacture date")

    supplier_name = Column(String(200), comment="Supplier")
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), index=True, comment="Source purchase order")
    location = Column(String(100), comment="Storage location")
    notes = Column(Text, comment="Notes")

    # available / reserved / expired / damaged
    status = Column(String(20), nullable=False, default=BATCH_AVAILABLE, index=True, comment="Status")

    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    updated_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", back_populates="batches")
    purchase_order = relationship("PurchaseOrder", foreign_keys=[purchase_order_id])

    def __repr__(self):
        return f"<InventoryBatch {self.batch_number}: {self.quantity}>"

    @property
    def status_display(self) -> str:
        status_map = {
            BATCH_AVAILABLE: "Available",
            BATCH_RESERVED: "Reserved",
            BATCH_EXPIRED: "Expired",
            BATCH_DAMAGED: "Damaged",
        }
        return status_map.get(self.status, self.status)


class InventoryTransaction(Base):
    """Stock movement - never updated or deleted"""
    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True, index=True)

    # no FK: the row must survive deletion of its batch
    batch_id = Column(Integer, index=True, comment="Batch id (empty for product level movements)")
    batch_number = Column(String(100), comment="Batch number snapshot")
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    # receive / ship / adjust / return / damage / expire
    transaction_type = Column(String(20), nullable=False, index=True, comment="Transaction type")

    # positive = stock in, negative = stock out
    quantity = Column(Integer, nullable=False, comment="Signed quantity change")

    order_id = Column(Integer, ForeignKey("orders.id"), index=True, comment="Related sales order")
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), index=True, comment="Related purchase order")
    notes = Column(Text, comment="Notes")

    performed_by = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    performed_by_name = Column(String(100), nullable=False, comment="Operator name snapshot")
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    product = relationship("Product", foreign_keys=[product_id])

    def __repr__(self):
        return f"<InventoryTransaction {self.product_id}: {self.transaction_type} {self.quantity:+d}>"

    @property
    def type_display(self) -> str:
        type_map = {
            TX_RECEIVE: "Received",
            TX_SHIP: "Shipped",
            TX_ADJUST: "Adjusted",
            TX_RETURN: "Returned",
            TX_DAMAGE: "Damaged",
            TX_EXPIRE: "Expired",
        }
        return type_map.get(self.transaction_type, self.transaction_type)
