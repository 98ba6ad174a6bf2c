"""
Business errors

Every error is an HTTPException so service functions can raise it directly
and FastAPI renders {"detail": message} without a translation layer.
"""

from fastapi import HTTPException


class OMSError(HTTPException):
    """Base class, never raised directly"""
    status_code = 400
    default_detail = "Request failed"

    def __init__(self, detail: str = None):
        super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail)

    def __str__(self) -> str:
        return self.detail


class AuthenticationRequired(OMSError):
    status_code = 401
    default_detail = "Not authenticated"


class AuthorizationDenied(OMSError):
    status_code = 403
    default_detail = "Not authorized"


class NotFound(OMSError):
    status_code = 404
    default_detail = "Not found"


class ProfileNotFound(NotFound):
    default_detail = "User profile not found"


class OrderNotFound(NotFound):
    default_detail = "Order not found"


class ProductNotFound(NotFound):
    default_detail = "Product not found"


class BatchNotFound(NotFound):
    default_detail = "Batch not found"


class PurchaseOrderNotFound(NotFound):
    default_detail = "Purchase order not found"


class CustomerNotFound(NotFound):
    default_detail = "Customer not found"


class SupplierNotFound(NotFound):
    default_detail = "Supplier not found"


class NotificationNotFound(NotFound):
    default_detail = "Notification not found"


class InvalidState(OMSError):
    status_code = 409
    default_detail = "Action not allowed in the current status"


class InsufficientStock(OMSError):
    status_code = 400

    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}. In stock: {available}, requested: {requested}"
        )


class NegativeQuantity(InvalidState):
    status_code = 400
    default_detail = "Insufficient quantity in batch"


class UniquenessViolation(OMSError):
    status_code = 409
    default_detail = "Record already exists"
