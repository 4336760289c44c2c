from __future__ import annotations

"""Errors raised while building carts and persisting invoices."""

from typing import Sequence


class BillingError(Exception):
    """Base class for billing failures surfaced to the cashier.

    ``code`` is a stable machine readable identifier, ``hint`` an optional
    suggestion for the user and ``states`` the invoice state machine trail
    recorded up to the failure.
    """

    code = "BILLING_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        hint: str | None = None,
        states: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.hint = hint
        self.states = tuple(states)


class ValidationError(BillingError):
    """Checkout input rejected before anything was written."""

    code = "VALIDATION"


class CartError(BillingError):
    """Cart mutation refused; the cart is left as it was."""

    code = "CART"


class DuplicateItemError(CartError):
    code = "DUPLICATE_ITEM"


class OutOfStockError(CartError):
    code = "OUT_OF_STOCK"


class ItemNotFoundError(CartError):
    code = "ITEM_NOT_FOUND"


class AtomicPathUnavailable(BillingError):
    """The atomic invoice procedure cannot be reached; use the fallback."""

    code = "ATOMIC_UNAVAILABLE"


class PersistenceError(BillingError):
    code = "PERSISTENCE"


class ItemWriteError(PersistenceError):
    """Invoice items could not be written; the header was removed."""

    code = "ITEM_WRITE"


class StockDecrementError(PersistenceError):
    """A unit could not be taken out of stock; the invoice was undone."""

    code = "STOCK_DECREMENT"

    def __init__(self, message: str, *, unit_key: str, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.unit_key = unit_key


class BookingUpdateWarning(BillingError):
    """Bookings could not be marked invoiced. Logged, never raised."""

    code = "BOOKING_UPDATE"
