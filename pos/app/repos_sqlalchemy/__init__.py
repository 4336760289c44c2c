"""SQLAlchemy-backed repository implementations."""

from .bookings_repo_sql import SqlBookingsRepo
from .invoices_repo_sql import SqlInvoiceProcedure, SqlInvoiceStore
from .stock_repo_sql import SqlStockLedger, adjust_quantity

__all__ = [
    "SqlBookingsRepo",
    "SqlInvoiceProcedure",
    "SqlInvoiceStore",
    "SqlStockLedger",
    "adjust_quantity",
]
