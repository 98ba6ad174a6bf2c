import asyncio

from oms.db.session import engine
from oms.db.base import Base

# import every model so the tables are registered on Base.metadata
from oms.models import (  # noqa: F401
    Profile, Product, Customer, Supplier, Order, OrderItem, OrderComment,
    OrderShippedQuantity, InventoryBatch, InventoryTransaction, PurchaseOrder,
    PurchaseOrderItem, PurchaseOrderComment, DeliveryVoucher, DeliveryVoucherItem,
    Notification, AuditLog
)


async def init_db() -> None:
    """
    Create all tables
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_tables_exist() -> None:
    """
    Called on application startup
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


if __name__ == "__main__":
    asyncio.run(init_db())
