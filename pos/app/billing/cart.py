from __future__ import annotations

"""Cart value object and the invoice totals derived from it.

A :class:`Cart` is immutable. Every operation returns a new cart and leaves
the one passed in untouched, so a failed checkout can always be retried with
the same cart.
"""

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from ..repos.bookings_repo import BookingsRepo
from ..repos.stock_repo import StockLedger, StockUnit
from ..tax.gst_engine import (
    AUTO_RATE_THRESHOLD,
    GSTLogic,
    apply_round_off,
    compute_reverse,
)
from .errors import DuplicateItemError, ItemNotFoundError, OutOfStockError

ROUND = Decimal("0.01")
ZERO = Decimal("0")

logger = logging.getLogger("pos.billing")


@dataclass(frozen=True)
class LineItem:
    unit_key: str
    description: str
    design_no: str
    mrp: Decimal
    discount: Decimal
    discount_percent: Decimal
    tax_logic: GSTLogic
    order_number: str | None = None
    delivered: bool = True

    @property
    def net_price(self) -> Decimal:
        return self.mrp - self.discount


@dataclass(frozen=True)
class Cart:
    items: tuple[LineItem, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __contains__(self, unit_key: object) -> bool:
        return any(item.unit_key == unit_key for item in self.items)

    def unit_keys(self) -> list[str]:
        return [item.unit_key for item in self.items]


@dataclass(frozen=True)
class AutoDiscount:
    amount: Decimal
    percent: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    total_mrp: Decimal
    total_discount: Decimal
    taxable_value: Decimal
    total_gst: Decimal
    net_payable: Decimal
    round_off: Decimal


def _q(amount: Decimal) -> Decimal:
    return amount.quantize(ROUND, rounding=ROUND_HALF_UP)


def _describe(unit: StockUnit) -> str:
    parts = [unit.design_no, unit.product_group, unit.color, unit.size]
    text = " - ".join(parts)
    if unit.order_number:
        text += f" (ORD:{unit.order_number})"
    return text


def compute_auto_discount(unit: StockUnit, today: date | None = None) -> AutoDiscount:
    """Return the promotional discount active on ``today`` for ``unit``.

    Missing start or end dates leave that side of the window open.
    """

    today = today or date.today()
    value = unit.discount_value
    if not value or value <= 0:
        return AutoDiscount(ZERO, ZERO)
    if unit.discount_start and today < unit.discount_start:
        return AutoDiscount(ZERO, ZERO)
    if unit.discount_end and today > unit.discount_end:
        return AutoDiscount(ZERO, ZERO)

    value = Decimal(str(value))
    mrp = Decimal(str(unit.mrp))
    if unit.discount_type == "percentage":
        return AutoDiscount(amount=_q(mrp * value / 100), percent=value)
    if unit.discount_type == "flat":
        percent = _q(value / mrp * 100) if mrp else ZERO
        return AutoDiscount(amount=value, percent=percent)
    return AutoDiscount(ZERO, ZERO)


def line_item_from_unit(unit: StockUnit, today: date | None = None) -> LineItem:
    discount = compute_auto_discount(unit, today)
    return LineItem(
        unit_key=unit.unit_key,
        description=_describe(unit),
        design_no=unit.design_no,
        mrp=Decimal(str(unit.mrp)),
        discount=discount.amount,
        discount_percent=discount.percent,
        tax_logic=GSTLogic(unit.gst_logic),
        order_number=unit.order_number,
        delivered=True,
    )


def add_item(
    cart: Cart, unit: StockUnit, ledger: StockLedger, today: date | None = None
) -> Cart:
    """Return ``cart`` with ``unit`` appended.

    Raises :class:`DuplicateItemError` when the unit is already billed and
    :class:`OutOfStockError` when the ledger reports no available quantity.
    """

    if unit.unit_key in cart:
        raise DuplicateItemError(
            f"Item {unit.unit_key} already added to bill", hint="Scan another item"
        )
    if ledger.get_available(unit.unit_key) <= 0:
        raise OutOfStockError(f"Item {unit.unit_key} is out of stock")
    return Cart(items=cart.items + (line_item_from_unit(unit, today),))


def scan_item(
    cart: Cart, code: str, ledger: StockLedger, today: date | None = None
) -> Cart:
    """Look up ``code`` in the ledger and add the unit to ``cart``."""

    code = (code or "").strip()
    unit = ledger.find_unit(code) if code else None
    if unit is None:
        raise ItemNotFoundError(f"Item {code!r} not found")
    return add_item(cart, unit, ledger, today)


def load_booked_items(
    cart: Cart,
    customer_key: str,
    bookings: BookingsRepo,
    ledger: StockLedger,
    today: date | None = None,
) -> tuple[Cart, int]:
    """Add the customer's open bookings to ``cart``.

    Units already in the cart, no longer in the catalogue or out of stock are
    skipped. Returns the new cart and the number of lines added.
    """

    added = 0
    for unit_key in bookings.open_bookings(customer_key):
        if unit_key in cart:
            continue
        unit = ledger.find_unit(unit_key)
        if unit is None or ledger.get_available(unit_key) <= 0:
            logger.info("skipping booked unit %s: not available", unit_key)
            continue
        cart = Cart(items=cart.items + (line_item_from_unit(unit, today),))
        added += 1
    return cart, added


def remove_item(cart: Cart, unit_key: str) -> Cart:
    return Cart(items=tuple(i for i in cart.items if i.unit_key != unit_key))


def _map_item(cart: Cart, unit_key: str, fn) -> Cart:
    return Cart(
        items=tuple(fn(i) if i.unit_key == unit_key else i for i in cart.items)
    )


def update_discount(
    cart: Cart, unit_key: str, value: Decimal | float | int, is_percent: bool
) -> Cart:
    """Set the discount of one line as a percentage or an amount.

    The paired field is recomputed. Values are not clamped here; a discount
    above MRP is rejected when the invoice is submitted.
    """

    value = Decimal(str(value))

    def _apply(item: LineItem) -> LineItem:
        if is_percent:
            return replace(item, discount_percent=value, discount=_q(item.mrp * value / 100))
        percent = _q(value / item.mrp * 100) if item.mrp else ZERO
        return replace(item, discount=value, discount_percent=percent)

    return _map_item(cart, unit_key, _apply)


def toggle_delivery(cart: Cart, unit_key: str) -> Cart:
    return _map_item(cart, unit_key, lambda i: replace(i, delivered=not i.delivered))


def compute_totals(
    cart: Cart, threshold: Decimal | int = AUTO_RATE_THRESHOLD
) -> InvoiceTotals:
    """Aggregate ``cart`` into invoice totals.

    Each line's price after discount is treated as GST inclusive. The payable
    amount is the whole-rupee rounding of MRP minus discounts, independent of
    the per-line tax rounding.
    """

    total_mrp = ZERO
    total_discount = ZERO
    taxable = ZERO
    total_gst = ZERO
    for item in cart.items:
        total_mrp += item.mrp
        total_discount += item.discount
        gst = compute_reverse(item.net_price, item.tax_logic, threshold)
        taxable += gst.base_price
        total_gst += gst.gst_amount

    net_payable, round_off = apply_round_off(total_mrp - total_discount)
    return InvoiceTotals(
        total_mrp=total_mrp,
        total_discount=total_discount,
        taxable_value=taxable,
        total_gst=total_gst,
        net_payable=net_payable,
        round_off=round_off,
    )
