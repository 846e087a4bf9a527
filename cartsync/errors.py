"""
Cart errors and common error messages.

Routine cart actions never raise these to the UI layer: the executor and
reconciler catch them, log, and fall back to local editing.
"""

from typing import Any

# Transport errors
ERROR_CART_UNAVAILABLE = "Cart service unavailable"
ERROR_INVALID_PAYLOAD = "Invalid cart payload"

# Identity errors
ERROR_NO_PRODUCT_REF = "Line item has no product reference"
ERROR_NO_LINE_ID = "Line item has no identity handle"

# Order errors
ERROR_EMPTY_CART = "Cart is empty"
ERROR_UNSYNCABLE_ITEMS = "Cart contains items that cannot be ordered"
ERROR_ORDER_FAILED = "Order submission failed"


class CartError(Exception):
    """Base error for cart operations."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        retryable: bool = False,
        raw_error: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable
        self.raw_error = raw_error


class TransportFailure(CartError):
    """Network, server or payload error on a backend cart call."""

    def __init__(
        self,
        message: str = ERROR_CART_UNAVAILABLE,
        status_code: int | None = None,
        raw_error: Any = None,
    ) -> None:
        super().__init__(message, code="TRANSPORT_FAILURE", retryable=True, raw_error=raw_error)
        self.status_code = status_code


class IdentityMismatch(CartError):
    """Mutation target lacks the reference required for the backend path."""

    def __init__(self, message: str = ERROR_NO_PRODUCT_REF) -> None:
        super().__init__(message, code="IDENTITY_MISMATCH", retryable=False)


class OrderRejected(CartError):
    """Order could not be built or was refused by the order service."""

    def __init__(self, message: str = ERROR_ORDER_FAILED, raw_error: Any = None) -> None:
        super().__init__(message, code="ORDER_REJECTED", retryable=False, raw_error=raw_error)
