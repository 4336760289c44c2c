from __future__ import annotations

"""Split GST into its statutory CGST/SGST or IGST components."""

import enum
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

ROUND = Decimal("0.01")
ZERO = Decimal("0.00")


class GSTTransactionType(str, enum.Enum):
    """Intra-state sales carry CGST+SGST, inter-state sales carry IGST."""

    CGST_SGST = "CGST_SGST"
    IGST = "IGST"


@dataclass(frozen=True)
class GSTBreakdown:
    gst_type: GSTTransactionType
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    total_gst_amount: Decimal


def split(
    gst_amount: Decimal | float | int,
    transaction_type: GSTTransactionType | str,
) -> GSTBreakdown:
    """Split ``gst_amount`` according to ``transaction_type``.

    For ``CGST_SGST`` the CGST half is rounded to ₹0.01 and SGST takes the
    remainder, so the two always add back up to ``gst_amount``.
    """

    amount = gst_amount if isinstance(gst_amount, Decimal) else Decimal(str(gst_amount))
    transaction_type = GSTTransactionType(transaction_type)
    if transaction_type is GSTTransactionType.IGST:
        return GSTBreakdown(
            gst_type=transaction_type,
            cgst_amount=ZERO,
            sgst_amount=ZERO,
            igst_amount=amount,
            total_gst_amount=amount,
        )
    half = (amount / 2).quantize(ROUND, rounding=ROUND_HALF_UP)
    return GSTBreakdown(
        gst_type=transaction_type,
        cgst_amount=half,
        sgst_amount=amount - half,
        igst_amount=ZERO,
        total_gst_amount=amount,
    )


def derive_type(
    supplier_state: str | None, customer_state: str | None
) -> GSTTransactionType:
    """Return the transaction type for a sale between two states.

    Missing state information always falls back to ``CGST_SGST``; IGST is
    only charged when both states are known and differ.
    """

    if not supplier_state or not customer_state:
        return GSTTransactionType.CGST_SGST
    if not supplier_state.strip() or not customer_state.strip():
        return GSTTransactionType.CGST_SGST
    if supplier_state.strip().lower() == customer_state.strip().lower():
        return GSTTransactionType.CGST_SGST
    return GSTTransactionType.IGST
