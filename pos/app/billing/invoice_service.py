from __future__ import annotations

"""Invoice generation for the billing counter.

:class:`InvoiceService` turns a :class:`~pos.app.billing.cart.Cart` into a
persisted sales invoice. The preferred route is a single atomic procedure.
When that procedure is unavailable the invoice is written step by step
(header, items, stock, bookings) and every completed step is undone if a
later one fails, so the stock ledger always ends where it started.
"""

import enum
import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Callable, Sequence

from config import Settings, get_settings

from ..repos.bookings_repo import BookingsRepo
from ..repos.invoices_repo import (
    AtomicInvoiceProcedure,
    Committed,
    InvoiceHeader,
    InvoiceItemRecord,
    InvoiceStore,
    Rejected,
    Unavailable,
)
from ..repos.stock_repo import StockLedger
from ..tax.gst_engine import HIGH_RATE, LOW_RATE, compute_reverse
from ..tax.gst_split import GSTTransactionType, derive_type, split
from .cart import Cart, InvoiceTotals, compute_totals
from .errors import (
    AtomicPathUnavailable,
    BillingError,
    BookingUpdateWarning,
    ItemWriteError,
    PersistenceError,
    StockDecrementError,
    ValidationError,
)

logger = logging.getLogger("pos.billing")

MOBILE_RE = re.compile(r"[0-9]{10}")
ZERO = Decimal("0")


class InvoiceState(str, enum.Enum):
    VALIDATING = "validating"
    PERSISTING_ATOMIC = "persisting_atomic"
    PERSISTING_FALLBACK = "persisting_fallback"
    FALLBACK_HEADER_WRITE = "fallback_header_write"
    FALLBACK_ITEMS_WRITE = "fallback_items_write"
    FALLBACK_STOCK_DECREMENT = "fallback_stock_decrement"
    FALLBACK_BOOKING_UPDATE = "fallback_booking_update"
    ROLLBACK_DECREMENTS = "rollback_decrements"
    ROLLBACK_HEADER = "rollback_header"
    DONE = "done"
    FAILED = "failed"


class PaymentStatus(str, enum.Enum):
    PAID = "paid"
    PARTIAL = "partial"
    PENDING = "pending"


@dataclass(frozen=True)
class Checkout:
    """Everything the cashier submits when generating an invoice."""

    cart: Cart
    customer_mobile: str
    customer_name: str = ""
    payment_mode: str = "Cash"
    amount_paid: Decimal = ZERO
    # Explicit override; derived from the customer's state when omitted.
    gst_type: GSTTransactionType | None = None
    customer_state: str | None = None
    expected_delivery_date: date | None = None
    created_by: str | None = None
    salesman_id: str | None = None


@dataclass(frozen=True)
class InvoiceResult:
    invoice_number: str
    invoice_id: str
    path: str
    net_payable: Decimal
    amount_paid: Decimal
    amount_pending: Decimal
    payment_status: PaymentStatus
    warnings: tuple[str, ...] = ()
    states: tuple[str, ...] = ()


@dataclass
class _Trail:
    states: list[str] = field(default_factory=list)

    def enter(self, state: InvoiceState) -> None:
        logger.debug("invoice state -> %s", state.value)
        self.states.append(state.value)


def settle_payment(
    net_payable: Decimal, amount_paid: Decimal | float | int | None
) -> tuple[Decimal, Decimal, PaymentStatus]:
    """Return ``(paid, pending, status)``; overpayment is capped at the total."""

    paid = min(Decimal(str(amount_paid or 0)), net_payable)
    pending = net_payable - paid
    if pending == 0:
        status = PaymentStatus.PAID
    elif paid > 0:
        status = PaymentStatus.PARTIAL
    else:
        status = PaymentStatus.PENDING
    return paid, pending, status


def summary_message(result: InvoiceResult) -> str:
    """Return the confirmation shown at the counter after checkout."""

    if result.amount_pending > 0:
        tail = f"Pending: ₹{result.amount_pending:.2f}"
    else:
        tail = "Fully Paid"
    return f"Invoice {result.invoice_number} generated successfully! {tail}"


class InvoiceService:
    """Persist invoices through the atomic procedure or the manual fallback."""

    def __init__(
        self,
        store: InvoiceStore,
        ledger: StockLedger,
        bookings: BookingsRepo,
        procedure: AtomicInvoiceProcedure | None = None,
        settings: Settings | None = None,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.bookings = bookings
        self.procedure = procedure
        self.settings = settings or get_settings()
        self.clock = clock or date.today

    # ------------------------------------------------------------------ build

    def validate(self, checkout: Checkout) -> None:
        if not checkout.cart.items:
            raise ValidationError("Please add items to the bill")
        if not MOBILE_RE.fullmatch(checkout.customer_mobile or ""):
            raise ValidationError(
                "Please enter valid customer mobile number",
                hint="Mobile number must have exactly 10 digits",
            )
        for item in checkout.cart.items:
            if item.mrp < 0:
                raise ValidationError(f"MRP of {item.unit_key} cannot be negative")
            if item.discount < 0 or item.discount > item.mrp:
                raise ValidationError(
                    f"Discount for {item.unit_key} must be between 0 and {item.mrp}"
                )
        if Decimal(str(checkout.amount_paid or 0)) < 0:
            raise ValidationError("Amount paid cannot be negative")

    def transaction_type(self, checkout: Checkout) -> GSTTransactionType:
        if checkout.gst_type is not None:
            return GSTTransactionType(checkout.gst_type)
        return derive_type(self.settings.supplier_state, checkout.customer_state)

    def hsn_code(self, gst_percentage: int) -> str:
        if gst_percentage == LOW_RATE:
            return self.settings.hsn_code_low_rate
        return self.settings.hsn_code_high_rate

    def build_invoice(
        self, checkout: Checkout, totals: InvoiceTotals | None = None
    ) -> tuple[InvoiceHeader, list[InvoiceItemRecord]]:
        """Return the header and item records for ``checkout``.

        Statutory CGST/SGST/IGST buckets are summed from the per-item split.
        """

        threshold = self.settings.auto_rate_threshold
        totals = totals or compute_totals(checkout.cart, threshold)
        gst_type = self.transaction_type(checkout)
        today = self.clock()
        statutory = {
            f"{kind}_{rate}": ZERO
            for kind in ("cgst", "sgst", "igst")
            for rate in (LOW_RATE, HIGH_RATE)
        }

        items: list[InvoiceItemRecord] = []
        for sr_no, item in enumerate(checkout.cart.items, start=1):
            gst = compute_reverse(item.net_price, item.tax_logic, threshold)
            parts = split(gst.gst_amount, gst_type)
            rate = LOW_RATE if gst.gst_percentage == LOW_RATE else HIGH_RATE
            intra = gst_type is GSTTransactionType.CGST_SGST
            if intra:
                statutory[f"cgst_{rate}"] += parts.cgst_amount
                statutory[f"sgst_{rate}"] += parts.sgst_amount
            else:
                statutory[f"igst_{rate}"] += parts.igst_amount
            half_rate = Decimal(gst.gst_percentage) / 2
            items.append(
                InvoiceItemRecord(
                    sr_no=sr_no,
                    unit_key=item.unit_key,
                    design_no=item.design_no,
                    product_description=item.description,
                    hsn_code=self.hsn_code(gst.gst_percentage),
                    mrp=item.mrp,
                    discount=item.discount,
                    taxable_value=gst.base_price,
                    gst_percentage=gst.gst_percentage,
                    gst_type=gst_type.value,
                    cgst_percentage=half_rate if intra else ZERO,
                    cgst_amount=parts.cgst_amount,
                    sgst_percentage=half_rate if intra else ZERO,
                    sgst_amount=parts.sgst_amount,
                    igst_percentage=ZERO if intra else Decimal(gst.gst_percentage),
                    igst_amount=parts.igst_amount,
                    total_value=item.net_price,
                    selling_price=item.net_price,
                    delivered=item.delivered,
                    salesman_id=checkout.salesman_id,
                    delivery_date=today if item.delivered else None,
                    expected_delivery_date=(
                        None if item.delivered else checkout.expected_delivery_date
                    ),
                )
            )

        paid, pending, status = settle_payment(totals.net_payable, checkout.amount_paid)
        header = InvoiceHeader(
            invoice_date=today,
            customer_mobile=checkout.customer_mobile,
            customer_name=checkout.customer_name,
            total_mrp=totals.total_mrp,
            total_discount=totals.total_discount,
            taxable_value=totals.taxable_value,
            total_gst=totals.total_gst,
            gst_type=gst_type.value,
            round_off=totals.round_off,
            net_payable=totals.net_payable,
            payment_mode=checkout.payment_mode,
            amount_paid=paid,
            amount_pending=pending,
            payment_status=status.value,
            created_by=checkout.created_by,
            **statutory,
        )
        return header, items

    def fallback_invoice_number(self) -> str:
        """Return ``INV<year><count+1>`` from a live invoice count.

        Two fallbacks running at the same time can compute the same number;
        the unique constraint on the header then rejects the second insert.
        """

        count = self.store.count_invoices()
        return f"{self.settings.invoice_prefix}{self.clock().year}{count + 1:06d}"

    # --------------------------------------------------------------- generate

    def generate(self, checkout: Checkout) -> InvoiceResult:
        """Persist ``checkout`` and return the created invoice.

        Raises a :class:`BillingError` subclass on failure. By then every
        write made for this attempt has been undone, except the best-effort
        booking update which only runs after the invoice is committed.
        """

        trail = _Trail()
        trail.enter(InvoiceState.VALIDATING)
        try:
            self.validate(checkout)
        except ValidationError as exc:
            raise self._fail(trail, exc)

        header, items = self.build_invoice(checkout)

        trail.enter(InvoiceState.PERSISTING_ATOMIC)
        try:
            committed = self._call_atomic(header, items)
            path = "atomic"
            warnings = self._update_bookings(checkout, committed.invoice_number)
        except AtomicPathUnavailable as signal:
            logger.warning(
                "atomic invoice procedure unavailable (%s); using sequential fallback",
                signal.message,
            )
            committed, warnings = self._persist_fallback(checkout, header, items, trail)
            path = "fallback"
        except PersistenceError as exc:
            raise self._fail(trail, exc)

        trail.enter(InvoiceState.DONE)
        logger.info(
            "invoice %s created via %s path (id=%s, items=%d)",
            committed.invoice_number,
            path,
            committed.invoice_id,
            len(items),
            extra={"invoice": committed.invoice_number},
        )
        return InvoiceResult(
            invoice_number=committed.invoice_number,
            invoice_id=committed.invoice_id,
            path=path,
            net_payable=header.net_payable,
            amount_paid=header.amount_paid,
            amount_pending=header.amount_pending,
            payment_status=PaymentStatus(header.payment_status),
            warnings=tuple(warnings),
            states=tuple(trail.states),
        )

    def mark_item_delivered(
        self, invoice_id: str, unit_key: str, delivered_on: date | None = None
    ) -> bool:
        """Flag one invoiced unit as handed over to the customer."""

        updated = self.store.set_item_delivery(
            invoice_id, unit_key, True, delivered_on or self.clock()
        )
        if not updated:
            logger.warning("no item %s on invoice %s to deliver", unit_key, invoice_id)
        return updated

    # -------------------------------------------------------------- internals

    @staticmethod
    def _fail(trail: _Trail, exc: BillingError) -> BillingError:
        trail.enter(InvoiceState.FAILED)
        exc.states = tuple(trail.states)
        logger.error("invoice generation failed [%s]: %s", exc.code, exc.message)
        return exc

    def _call_atomic(
        self, header: InvoiceHeader, items: Sequence[InvoiceItemRecord]
    ) -> Committed:
        if self.procedure is None:
            raise AtomicPathUnavailable("no atomic invoice procedure configured")
        try:
            outcome = self.procedure.call(header, items)
        except Exception as exc:
            raise PersistenceError(f"Invoice procedure failed: {exc}") from exc
        if isinstance(outcome, Committed):
            return outcome
        if isinstance(outcome, Unavailable):
            raise AtomicPathUnavailable(outcome.reason)
        if isinstance(outcome, Rejected):
            raise PersistenceError(
                outcome.message, code=outcome.code or PersistenceError.code
            )
        raise PersistenceError(f"Unexpected invoice procedure outcome: {outcome!r}")

    def _persist_fallback(
        self,
        checkout: Checkout,
        header: InvoiceHeader,
        items: Sequence[InvoiceItemRecord],
        trail: _Trail,
    ) -> tuple[Committed, list[str]]:
        trail.enter(InvoiceState.PERSISTING_FALLBACK)

        trail.enter(InvoiceState.FALLBACK_HEADER_WRITE)
        try:
            number = self.fallback_invoice_number()
            invoice_id = self.store.insert_header(replace(header, invoice_number=number))
        except Exception as exc:
            raise self._fail(
                trail, PersistenceError(f"Failed to create invoice: {exc}")
            ) from exc

        trail.enter(InvoiceState.FALLBACK_ITEMS_WRITE)
        try:
            self.store.insert_items(invoice_id, items)
        except Exception as exc:
            trail.enter(InvoiceState.ROLLBACK_HEADER)
            self._delete_header(invoice_id)
            raise self._fail(
                trail, ItemWriteError(f"Failed to save invoice items: {exc}")
            ) from exc

        trail.enter(InvoiceState.FALLBACK_STOCK_DECREMENT)
        decremented: list[str] = []
        for item in checkout.cart.items:
            cause: Exception | None = None
            try:
                ok = self.ledger.adjust(item.unit_key, -1)
            except Exception as exc:
                ok, cause = False, exc
            if not ok:
                logger.error(
                    "failed to update quantity for %s, rolling back invoice %s",
                    item.unit_key,
                    number,
                )
                trail.enter(InvoiceState.ROLLBACK_DECREMENTS)
                self._restore_stock(decremented)
                trail.enter(InvoiceState.ROLLBACK_HEADER)
                self._delete_header(invoice_id)
                error = StockDecrementError(
                    f"Failed to update quantity for barcode {item.unit_key}. "
                    "Transaction cancelled.",
                    unit_key=item.unit_key,
                )
                raise self._fail(trail, error) from cause
            decremented.append(item.unit_key)

        trail.enter(InvoiceState.FALLBACK_BOOKING_UPDATE)
        warnings = self._update_bookings(checkout, number)
        return Committed(invoice_number=number, invoice_id=invoice_id), warnings

    def _restore_stock(self, unit_keys: Sequence[str]) -> None:
        for unit_key in unit_keys:
            try:
                restored = self.ledger.adjust(unit_key, 1)
            except Exception:
                logger.exception("could not restore stock for %s", unit_key)
                continue
            if not restored:
                logger.error("stock ledger refused to restore %s", unit_key)

    def _delete_header(self, invoice_id: str) -> None:
        try:
            self.store.delete_invoice(invoice_id)
        except Exception:
            logger.exception("could not delete partial invoice %s", invoice_id)

    def _update_bookings(self, checkout: Checkout, invoice_number: str) -> list[str]:
        try:
            changed = self.bookings.mark_invoiced(
                checkout.customer_mobile, checkout.cart.unit_keys(), invoice_number
            )
        except Exception as exc:
            warning = BookingUpdateWarning(
                f"Bookings not updated for invoice {invoice_number}: {exc}"
            )
            logger.warning("%s", warning.message)
            return [warning.message]
        if changed:
            logger.info("%d booking(s) marked invoiced by %s", changed, invoice_number)
        return []
