"""Repository interface for the stock ledger."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class StockUnit:
    """Catalogue view of a sellable stock unit."""

    unit_key: str
    design_no: str
    mrp: Decimal
    gst_logic: str
    available_quantity: int
    product_group: str = ""
    color: str = ""
    size: str = ""
    order_number: str | None = None
    discount_type: str | None = None
    discount_value: Decimal | None = None
    discount_start: date | None = None
    discount_end: date | None = None


class StockLedger(ABC):
    """Contract for stock lookups and quantity adjustments."""

    @abstractmethod
    def find_unit(self, unit_key: str) -> StockUnit | None:
        """Return the active unit for ``unit_key`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    def get_available(self, unit_key: str) -> int:
        """Return the available quantity, ``0`` for unknown units."""
        raise NotImplementedError

    @abstractmethod
    def adjust(self, unit_key: str, delta: int) -> bool:
        """Apply ``delta`` to the available quantity.

        Returns ``False`` instead of raising when the unit is unknown or the
        quantity would drop below zero.
        """
        raise NotImplementedError
