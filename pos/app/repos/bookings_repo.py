"""Repository interface for customer e-bookings."""

from abc import ABC, abstractmethod
from typing import Sequence


class BookingsRepo(ABC):
    """Contract for reading and closing open bookings."""

    @abstractmethod
    def open_bookings(self, customer_key: str) -> list[str]:
        """Return unit keys booked by ``customer_key`` and not yet invoiced."""
        raise NotImplementedError

    @abstractmethod
    def mark_invoiced(
        self, customer_key: str, unit_keys: Sequence[str], invoice_number: str
    ) -> int:
        """Mark matching open bookings invoiced; return how many changed."""
        raise NotImplementedError
