from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

class ErrorResponse(BaseModel):
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

class OrderCacheError(Exception):
    """Base exception for the order service."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(code=self.code, message=self.message, details=self.details)

class OrderValidationError(OrderCacheError):
    """Malformed or incomplete order document."""

    status_code = 422

    def __init__(self, message: str = "Order document is invalid", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)

class SchemaError(OrderCacheError):
    """A table could not be ensured at startup."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("SCHEMA_ERROR", message, details)

class StoreError(OrderCacheError):
    """Order store failure not covered by a more specific subclass."""

    def __init__(self, message: str = "Order store error", details: Optional[Dict[str, Any]] = None,
                 code: str = "STORE_ERROR"):
        super().__init__(code, message, details)

class StoreConflict(StoreError):
    """An order with the same order_uid is already committed."""

    status_code = 409

    def __init__(self, order_uid: str):
        super().__init__(f"Order {order_uid} already exists", {"order_uid": order_uid}, code="ORDER_EXISTS")

class StoreIntegrityError(StoreError):
    """Referential or constraint violation while writing or reading an order."""

    def __init__(self, message: str = "Order rows are inconsistent", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="STORE_INTEGRITY_ERROR")

class StoreUnavailable(StoreError):
    """The database could not be reached."""

    def __init__(self, message: str = "Order store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="STORE_UNAVAILABLE")
