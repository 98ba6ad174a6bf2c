"""V1 API router aggregation"""
from fastapi import APIRouter

from oms.api.api_v1.endpoints import (
    audit_logs, inventory, products, partners, purchase_orders, notifications, profiles,
)
from oms.api.api_v1.endpoints.orders import router as orders_router

api_router = APIRouter()

# order / inventory core
api_router.include_router(orders_router, prefix="/orders", tags=["Orders"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["Inventory"])
api_router.include_router(purchase_orders.router, prefix="/purchase-orders", tags=["Purchase orders"])

# catalogue and partners
api_router.include_router(products.router, prefix="/products", tags=["Products"])
api_router.include_router(partners.customers_router, prefix="/customers", tags=["Customers"])
api_router.include_router(partners.suppliers_router, prefix="/suppliers", tags=["Suppliers"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Audit log"])

# users
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
