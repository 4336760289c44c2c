"""Cart handling and invoice generation for the billing counter."""

from .cart import (
    Cart,
    InvoiceTotals,
    LineItem,
    add_item,
    compute_auto_discount,
    compute_totals,
    load_booked_items,
    remove_item,
    scan_item,
    toggle_delivery,
    update_discount,
)
from .errors import (
    BillingError,
    CartError,
    DuplicateItemError,
    ItemNotFoundError,
    ItemWriteError,
    OutOfStockError,
    PersistenceError,
    StockDecrementError,
    ValidationError,
)
from .invoice_service import (
    Checkout,
    InvoiceResult,
    InvoiceService,
    InvoiceState,
    PaymentStatus,
    summary_message,
)

__all__ = [
    "Cart",
    "InvoiceTotals",
    "LineItem",
    "add_item",
    "compute_auto_discount",
    "compute_totals",
    "load_booked_items",
    "remove_item",
    "scan_item",
    "toggle_delivery",
    "update_discount",
    "BillingError",
    "CartError",
    "DuplicateItemError",
    "ItemNotFoundError",
    "ItemWriteError",
    "OutOfStockError",
    "PersistenceError",
    "StockDecrementError",
    "ValidationError",
    "Checkout",
    "InvoiceResult",
    "InvoiceService",
    "InvoiceState",
    "PaymentStatus",
    "summary_message",
]
