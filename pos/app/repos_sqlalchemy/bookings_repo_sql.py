"""SQLAlchemy implementation for customer e-bookings."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import sessionmaker

from ..models_tenant import EBooking
from ..repos.bookings_repo import BookingsRepo


class SqlBookingsRepo(BookingsRepo):
    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def open_bookings(self, customer_key: str) -> list[str]:
        with self.session_factory() as db:
            rows = db.scalars(
                select(EBooking.unit_key)
                .where(
                    EBooking.customer_mobile == customer_key,
                    EBooking.status == "booked",
                )
                .order_by(EBooking.id)
            )
            return list(rows)

    def mark_invoiced(
        self, customer_key: str, unit_keys: Sequence[str], invoice_number: str
    ) -> int:
        if not unit_keys:
            return 0
        with self.session_factory() as db:
            result = db.execute(
                update(EBooking)
                .where(
                    EBooking.customer_mobile == customer_key,
                    EBooking.status == "booked",
                    EBooking.unit_key.in_(list(unit_keys)),
                )
                .values(status="invoiced", invoice_number=invoice_number)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        return result.rowcount
