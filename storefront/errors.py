"""
Error constants and exception types for cart storage.

Message strings are kept here so services and tests share one source.
"""

# Validation errors
ERROR_EMPTY_KEY = "key must be a non-empty string"
ERROR_EMPTY_PRODUCT_ID = "product_id must be a non-empty string"
ERROR_INVALID_QUANTITY = "quantity must be a positive integer"
ERROR_INVALID_NEW_QUANTITY = "new_quantity must be a non-negative integer"
ERROR_INVALID_UNIT_PRICE = "unit_price must be a non-negative number"
ERROR_INVALID_VARIANT = "variant options must be non-empty strings"

# Lookup errors
ERROR_ITEM_NOT_FOUND = "Item not found in cart"

# Store errors
ERROR_CART_CONFLICT = "Cart is being modified concurrently, try again"
ERROR_STORE_UNAVAILABLE = "Cart store unavailable"


class CartError(Exception):
    """Base class for all cart storage errors."""


class ValidationError(CartError, ValueError):
    """Caller passed bad input. Never retried."""


class NotFoundError(CartError, LookupError):
    """Operation targets a line item that is not in the cart."""


class ConflictError(CartError):
    """Atomic update lost every attempt to concurrent writers.

    Transient; safe for the caller to retry.
    """

    def __init__(self, key: str, attempts: int) -> None:
        super().__init__(f"{ERROR_CART_CONFLICT} (after {attempts} attempts)")
        self.key = key
        self.attempts = attempts


class StoreUnavailableError(CartError):
    """Backing key-value store could not be reached."""
