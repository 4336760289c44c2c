from __future__ import annotations

"""GST calculation helpers for retail billing.

Two tax regimes are supported. ``AUTO_5_18`` charges 5% below the price
threshold and 18% at or above it, ``FLAT_5`` always charges 5%. Every
monetary output is rounded to ₹0.01 where it is computed, so per-item sums may
drift by a paisa or two from an invoice-level rounding.
"""

import enum
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

ROUND = Decimal("0.01")
RUPEE = Decimal("1")

AUTO_RATE_THRESHOLD = Decimal("2500")
LOW_RATE = 5
HIGH_RATE = 18


class GSTLogic(str, enum.Enum):
    """Rate selection rule attached to every stock unit."""

    AUTO_5_18 = "AUTO_5_18"
    FLAT_5 = "FLAT_5"


@dataclass(frozen=True)
class ForwardGST:
    gst_percentage: int
    cgst_percentage: Decimal
    sgst_percentage: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    total_gst: Decimal


@dataclass(frozen=True)
class ReverseGST:
    base_price: Decimal
    gst_amount: Decimal
    gst_percentage: int


@dataclass(frozen=True)
class ForwardInvoiceTotal:
    total_mrp: Decimal
    total_discount: Decimal
    taxable_value: Decimal
    cgst_5: Decimal
    sgst_5: Decimal
    cgst_18: Decimal
    sgst_18: Decimal
    total_gst: Decimal
    subtotal: Decimal
    round_off: Decimal
    net_payable: Decimal


def _money(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _q(amount: Decimal) -> Decimal:
    return amount.quantize(ROUND, rounding=ROUND_HALF_UP)


def select_rate(
    value: Decimal | float | int,
    logic: GSTLogic | str,
    threshold: Decimal | int = AUTO_RATE_THRESHOLD,
) -> int:
    """Return the GST percentage for ``value`` under ``logic``."""

    logic = GSTLogic(logic)
    if logic is GSTLogic.FLAT_5:
        return LOW_RATE
    return LOW_RATE if _money(value) < _money(threshold) else HIGH_RATE


def compute_forward(
    taxable_value: Decimal | float | int,
    logic: GSTLogic | str,
    threshold: Decimal | int = AUTO_RATE_THRESHOLD,
) -> ForwardGST:
    """Compute GST on a tax-exclusive ``taxable_value``.

    The rate is chosen from the taxable value itself. CGST and SGST each carry
    half of the rate and half of the tax.

    >>> compute_forward(Decimal("1000"), GSTLogic.AUTO_5_18).total_gst
    Decimal('50.00')
    """

    taxable = _money(taxable_value)
    rate = select_rate(taxable, logic, threshold)
    half_rate = Decimal(rate) / 2
    total = taxable * Decimal(rate) / Decimal("100")
    half = total / 2
    return ForwardGST(
        gst_percentage=rate,
        cgst_percentage=half_rate,
        sgst_percentage=half_rate,
        cgst_amount=_q(half),
        sgst_amount=_q(half),
        total_gst=_q(total),
    )


def compute_reverse(
    inclusive_value: Decimal | float | int,
    logic: GSTLogic | str,
    threshold: Decimal | int = AUTO_RATE_THRESHOLD,
) -> ReverseGST:
    """Split a tax-inclusive ``inclusive_value`` into base price and GST.

    The rate is chosen from the inclusive value, so ₹2500 under
    ``AUTO_5_18`` is taxed at 18%.

    >>> compute_reverse(Decimal("1000"), GSTLogic.AUTO_5_18)
    ReverseGST(base_price=Decimal('952.38'), gst_amount=Decimal('47.62'), gst_percentage=5)
    """

    inclusive = _money(inclusive_value)
    rate = select_rate(inclusive, logic, threshold)
    base = inclusive / (1 + Decimal(rate) / Decimal("100"))
    gst = inclusive - base
    return ReverseGST(base_price=_q(base), gst_amount=_q(gst), gst_percentage=rate)


def round_half_away(amount: Decimal | float | int) -> Decimal:
    """Round ``amount`` to whole rupees, halves away from zero."""

    return _money(amount).quantize(RUPEE, rounding=ROUND_HALF_UP)


def apply_round_off(amount: Decimal | float | int) -> tuple[Decimal, Decimal]:
    """Return ``(rounded, round_off)`` for a whole-rupee payable amount."""

    amount = _money(amount)
    rounded = round_half_away(amount)
    return rounded, _q(rounded - amount)


def calculate_invoice_total(
    items: Iterable[dict],
    loyalty_redemption: Decimal | float | int = 0,
    threshold: Decimal | int = AUTO_RATE_THRESHOLD,
) -> ForwardInvoiceTotal:
    """Summarise tax-exclusive ``items`` into statutory GST buckets.

    Each mapping provides ``mrp``, ``discount`` and ``gst_logic``. The amount
    after discount is treated as taxable and GST is added on top, then any
    loyalty redemption is subtracted before the whole-rupee round off.
    """

    total_mrp = Decimal("0")
    total_discount = Decimal("0")
    buckets = {
        (LOW_RATE, "cgst"): Decimal("0"),
        (LOW_RATE, "sgst"): Decimal("0"),
        (HIGH_RATE, "cgst"): Decimal("0"),
        (HIGH_RATE, "sgst"): Decimal("0"),
    }

    for item in items:
        mrp = _money(item["mrp"])
        discount = _money(item.get("discount", 0))
        total_mrp += mrp
        total_discount += discount
        gst = compute_forward(mrp - discount, item["gst_logic"], threshold)
        buckets[(gst.gst_percentage, "cgst")] += gst.cgst_amount
        buckets[(gst.gst_percentage, "sgst")] += gst.sgst_amount

    taxable = total_mrp - total_discount
    total_gst = sum(buckets.values(), Decimal("0"))
    subtotal = taxable + total_gst - _money(loyalty_redemption)
    rounded, round_off = apply_round_off(subtotal)

    return ForwardInvoiceTotal(
        total_mrp=_q(total_mrp),
        total_discount=_q(total_discount),
        taxable_value=_q(taxable),
        cgst_5=_q(buckets[(LOW_RATE, "cgst")]),
        sgst_5=_q(buckets[(LOW_RATE, "sgst")]),
        cgst_18=_q(buckets[(HIGH_RATE, "cgst")]),
        sgst_18=_q(buckets[(HIGH_RATE, "sgst")]),
        total_gst=_q(total_gst),
        subtotal=_q(subtotal),
        round_off=round_off,
        net_payable=rounded,
    )
