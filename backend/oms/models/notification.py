from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Index

from oms.db.base import Base


ORDER_SUBMITTED = "order_submitted"
ORDER_APPROVED = "order_approved"
ORDER_REJECTED = "order_rejected"
EDIT_REQUESTED = "edit_requested"
WAREHOUSE_CONFIRMED = "warehouse_confirmed"
WAREHOUSE_REJECTED = "warehouse_rejected"
ORDER_SHIPPED = "order_shipped"
ORDER_COMPLETED = "order_completed"
ORDER_FAILED = "order_failed"
ORDER_CANCELLED = "order_cancelled"

NOTIFICATION_TYPES = (
    ORDER_SUBMITTED, ORDER_APPROVED, ORDER_REJECTED, EDIT_REQUESTED, WAREHOUSE_CONFIRMED,
    WAREHOUSE_REJECTED, ORDER_SHIPPED, ORDER_COMPLETED, ORDER_FAILED, ORDER_CANCELLED,
)


class Notification(Base):
    """In-app notification for one profile"""
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True, comment="Recipient")
    order_id = Column(Integer, ForeignKey("orders.id"), index=True, comment="Related order")
    order_number = Column(String(50), comment="Order number snapshot")
    type = Column(String(30), nullable=False, comment="Event type")
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification {self.type} -> {self.user_id}>"
