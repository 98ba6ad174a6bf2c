# models package
# importing a model registers its table on Base.metadata

from oms.models.profile import Profile
from oms.models.product import Product
from oms.models.partner import Customer, Supplier
from oms.models.order import Order, OrderItem, OrderComment, OrderShippedQuantity
from oms.models.inventory import InventoryBatch, InventoryTransaction
from oms.models.purchase_order import PurchaseOrder, PurchaseOrderItem, PurchaseOrderComment
from oms.models.delivery_voucher import DeliveryVoucher, DeliveryVoucherItem
from oms.models.notification import Notification
from oms.models.audit_log import AuditLog

__all__ = [
    "Profile",
    "Product",
    "Customer",
    "Supplier",
    "Order",
    "OrderItem",
    "OrderComment",
    "OrderShippedQuantity",
    "InventoryBatch",
    "InventoryTransaction",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderComment",
    "DeliveryVoucher",
    "DeliveryVoucherItem",
    "Notification",
    "AuditLog",
]
