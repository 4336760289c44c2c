"""Repository interfaces for sales invoice persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence, Union


@dataclass(frozen=True)
class InvoiceHeader:
    invoice_date: date
    customer_mobile: str
    customer_name: str
    total_mrp: Decimal
    total_discount: Decimal
    taxable_value: Decimal
    total_gst: Decimal
    gst_type: str
    cgst_5: Decimal
    sgst_5: Decimal
    cgst_18: Decimal
    sgst_18: Decimal
    igst_5: Decimal
    igst_18: Decimal
    round_off: Decimal
    net_payable: Decimal
    payment_mode: str
    amount_paid: Decimal
    amount_pending: Decimal
    payment_status: str
    created_by: str | None = None
    invoice_number: str | None = None


@dataclass(frozen=True)
class InvoiceItemRecord:
    """Immutable snapshot of a sold unit, decoupled from the stock ledger."""

    sr_no: int
    unit_key: str
    design_no: str
    product_description: str
    hsn_code: str
    mrp: Decimal
    discount: Decimal
    taxable_value: Decimal
    gst_percentage: int
    gst_type: str
    cgst_percentage: Decimal
    cgst_amount: Decimal
    sgst_percentage: Decimal
    sgst_amount: Decimal
    igst_percentage: Decimal
    igst_amount: Decimal
    total_value: Decimal
    selling_price: Decimal
    delivered: bool
    quantity: int = 1
    salesman_id: str | None = None
    delivery_date: date | None = None
    expected_delivery_date: date | None = None


@dataclass(frozen=True)
class Committed:
    invoice_number: str
    invoice_id: str


@dataclass(frozen=True)
class Unavailable:
    reason: str


@dataclass(frozen=True)
class Rejected:
    message: str
    code: str | None = None


ProcedureOutcome = Union[Committed, Unavailable, Rejected]


class InvoiceStore(ABC):
    """Record store operations used by the sequential invoice path."""

    @abstractmethod
    def count_invoices(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def insert_header(self, header: InvoiceHeader) -> str:
        """Insert ``header`` and return the new invoice id."""
        raise NotImplementedError

    @abstractmethod
    def insert_items(
        self, invoice_id: str, items: Sequence[InvoiceItemRecord]
    ) -> None:
        """Insert all ``items`` for ``invoice_id`` or none of them."""
        raise NotImplementedError

    @abstractmethod
    def delete_invoice(self, invoice_id: str) -> None:
        """Delete the header for ``invoice_id`` together with its items."""
        raise NotImplementedError

    @abstractmethod
    def set_item_delivery(
        self,
        invoice_id: str,
        unit_key: str,
        delivered: bool,
        delivery_date: date | None,
    ) -> bool:
        """Update the delivery flag of one invoice item."""
        raise NotImplementedError


class AtomicInvoiceProcedure(ABC):
    """Server-side procedure writing header, items and stock in one go."""

    @abstractmethod
    def call(
        self, header: InvoiceHeader, items: Sequence[InvoiceItemRecord]
    ) -> ProcedureOutcome:
        """Persist the invoice atomically.

        Returns :class:`Committed` on success, :class:`Unavailable` when the
        procedure is not deployed and :class:`Rejected` for any other
        failure. Called at most once per submission.
        """
        raise NotImplementedError
