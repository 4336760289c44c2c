"""SQLAlchemy implementation for invoice persistence."""

from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import date
from typing import Callable, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from ..models_tenant import SalesInvoice, SalesInvoiceItem
from ..repos.invoices_repo import (
    AtomicInvoiceProcedure,
    Committed,
    InvoiceHeader,
    InvoiceItemRecord,
    InvoiceStore,
    ProcedureOutcome,
    Rejected,
    Unavailable,
)
from ..utils import invoice_counter
from .stock_repo_sql import adjust_quantity

logger = logging.getLogger("pos.invoices")


def _item_row(item: InvoiceItemRecord, **extra) -> SalesInvoiceItem:
    return SalesInvoiceItem(**asdict(item), **extra)


class SqlInvoiceStore(InvoiceStore):
    """Invoice store where every call runs in its own transaction."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def count_invoices(self) -> int:
        with self.session_factory() as db:
            return int(db.scalar(select(func.count(SalesInvoice.id))) or 0)

    def insert_header(self, header: InvoiceHeader) -> str:
        with self.session_factory() as db:
            invoice = SalesInvoice(**asdict(header))
            db.add(invoice)
            db.commit()
            return str(invoice.id)

    def insert_items(
        self, invoice_id: str, items: Sequence[InvoiceItemRecord]
    ) -> None:
        with self.session_factory() as db:
            db.add_all(_item_row(item, invoice_id=int(invoice_id)) for item in items)
            db.commit()

    def delete_invoice(self, invoice_id: str) -> None:
        with self.session_factory() as db:
            invoice = db.get(SalesInvoice, int(invoice_id))
            if invoice is None:
                return
            db.delete(invoice)
            db.commit()

    def set_item_delivery(
        self,
        invoice_id: str,
        unit_key: str,
        delivered: bool,
        delivery_date: date | None,
    ) -> bool:
        if not str(invoice_id).isdigit():
            return False
        with self.session_factory() as db:
            result = db.execute(
                update(SalesInvoiceItem)
                .where(
                    SalesInvoiceItem.invoice_id == int(invoice_id),
                    SalesInvoiceItem.unit_key == unit_key,
                )
                .values(delivered=delivered, delivery_date=delivery_date)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        return result.rowcount > 0


class SqlInvoiceProcedure(AtomicInvoiceProcedure):
    """Write header, items and stock decrements in a single transaction.

    The invoice number is drawn from ``invoice_counters`` inside the same
    transaction, so a rejected invoice leaves neither a header nor a gap in
    the series.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        enabled: bool = True,
        prefix: str = "INV",
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.session_factory = session_factory
        self.enabled = enabled
        self.prefix = prefix
        self.clock = clock

    def call(
        self, header: InvoiceHeader, items: Sequence[InvoiceItemRecord]
    ) -> ProcedureOutcome:
        if not self.enabled:
            return Unavailable("invoice procedure is not enabled")

        with self.session_factory() as db:
            try:
                series = invoice_counter.build_series(self.prefix, self.clock())
                number = invoice_counter.next_invoice_number(db, series)
                invoice = SalesInvoice(**asdict(replace(header, invoice_number=number)))
                invoice.items = [_item_row(item) for item in items]
                db.add(invoice)
                db.flush()
                for item in items:
                    if not adjust_quantity(db, item.unit_key, -item.quantity):
                        db.rollback()
                        logger.warning(
                            "atomic invoice rejected: insufficient stock for %s",
                            item.unit_key,
                        )
                        return Rejected(
                            f"Insufficient stock for barcode {item.unit_key}",
                            code="STOCK",
                        )
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                return Rejected(f"Invoice rejected by database: {exc.orig}", code="CONSTRAINT")
            return Committed(invoice_number=number, invoice_id=str(invoice.id))
