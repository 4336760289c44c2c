"""Shared fixtures and in-memory collaborators for billing tests."""

import os
import pathlib
import sys
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

# Keep tests away from any local error sink or database.
os.environ.pop("ERROR_DSN", None)
os.environ.setdefault("DATABASE_URL", "sqlite://")

from config import Settings  # noqa: E402
from pos.app.db import create_test_session  # noqa: E402
from pos.app.models_tenant import EBooking  # noqa: E402
from pos.app.models_tenant import StockUnit as StockUnitRow  # noqa: E402
from pos.app.repos.bookings_repo import BookingsRepo  # noqa: E402
from pos.app.repos.invoices_repo import (  # noqa: E402
    AtomicInvoiceProcedure,
    Committed,
    InvoiceStore,
)
from pos.app.repos.stock_repo import StockLedger, StockUnit  # noqa: E402

TODAY = date(2024, 5, 1)


def make_unit(unit_key, mrp, gst_logic="AUTO_5_18", qty=1, **kwargs) -> StockUnit:
    fields = dict(
        unit_key=unit_key,
        design_no=kwargs.pop("design_no", f"D{unit_key}"),
        mrp=Decimal(str(mrp)),
        gst_logic=gst_logic,
        available_quantity=qty,
        product_group="Shoes",
        color="Black",
        size="9",
    )
    fields.update(kwargs)
    return StockUnit(**fields)


class FakeLedger(StockLedger):
    def __init__(self, units=(), fail_on=(), raise_on=()):
        self.units = {u.unit_key: u for u in units}
        self.qty = {u.unit_key: u.available_quantity for u in units}
        self.fail_on = set(fail_on)
        self.raise_on = set(raise_on)
        self.calls = []

    def find_unit(self, unit_key):
        return self.units.get(unit_key)

    def get_available(self, unit_key):
        return self.qty.get(unit_key, 0)

    def adjust(self, unit_key, delta):
        self.calls.append((unit_key, delta))
        if delta < 0 and unit_key in self.raise_on:
            raise RuntimeError("connection reset")
        if delta < 0 and unit_key in self.fail_on:
            return False
        if unit_key not in self.qty or self.qty[unit_key] + delta < 0:
            return False
        self.qty[unit_key] += delta
        return True


class FakeStore(InvoiceStore):
    def __init__(self, existing=0, fail_header=False, fail_items=False):
        self.headers = {}
        self.items = {}
        self.existing = existing
        self.fail_header = fail_header
        self.fail_items = fail_items
        self.deleted = []
        self.deliveries = []
        self._next_id = 100

    def count_invoices(self):
        return self.existing + len(self.headers)

    def insert_header(self, header):
        if self.fail_header:
            raise RuntimeError("duplicate key value violates unique constraint")
        self._next_id += 1
        invoice_id = str(self._next_id)
        self.headers[invoice_id] = header
        return invoice_id

    def insert_items(self, invoice_id, items):
        if self.fail_items:
            raise RuntimeError("value too long for column")
        self.items[invoice_id] = list(items)

    def delete_invoice(self, invoice_id):
        self.deleted.append(invoice_id)
        self.headers.pop(invoice_id, None)
        self.items.pop(invoice_id, None)

    def set_item_delivery(self, invoice_id, unit_key, delivered, delivery_date):
        for index, item in enumerate(self.items.get(invoice_id, [])):
            if item.unit_key == unit_key:
                self.items[invoice_id][index] = replace(
                    item, delivered=delivered, delivery_date=delivery_date
                )
                self.deliveries.append((invoice_id, unit_key, delivery_date))
                return True
        return False


class FakeBookings(BookingsRepo):
    def __init__(self, bookings=None, fail=False):
        self.bookings = dict(bookings or {})
        self.fail = fail
        self.marked = []

    def open_bookings(self, customer_key):
        return list(self.bookings.get(customer_key, []))

    def mark_invoiced(self, customer_key, unit_keys, invoice_number):
        if self.fail:
            raise RuntimeError("bookings table locked")
        open_keys = self.bookings.get(customer_key, [])
        changed = [k for k in unit_keys if k in open_keys]
        self.marked.append((customer_key, list(unit_keys), invoice_number))
        return len(changed)


class FakeProcedure(AtomicInvoiceProcedure):
    def __init__(self, outcome=None, exc=None):
        self.outcome = outcome or Committed("INV2024000001", "1")
        self.exc = exc
        self.calls = []

    def call(self, header, items):
        self.calls.append((header, list(items)))
        if self.exc is not None:
            raise self.exc
        return self.outcome


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        supplier_state="Maharashtra",
        atomic_procedure_enabled=True,
        hsn_code_low_rate="6404",
        hsn_code_high_rate="6403",
        invoice_prefix="INV",
        auto_rate_threshold=2500,
        log_level="INFO",
        error_dsn=None,
    )


@pytest.fixture
def session_factory():
    factory, engine = create_test_session()
    yield factory
    engine.dispose()


@pytest.fixture
def seed_stock(session_factory):
    """Insert stock rows; each entry is ``(unit_key, mrp, qty)`` or a dict."""

    def _seed(*entries, gst_logic="AUTO_5_18", status="active"):
        with session_factory() as db:
            for entry in entries:
                if isinstance(entry, dict):
                    row = StockUnitRow(**entry)
                else:
                    unit_key, mrp, qty = entry
                    row = StockUnitRow(
                        unit_key=unit_key,
                        design_no=f"D{unit_key}",
                        product_group="Shoes",
                        color="Black",
                        size="9",
                        mrp=Decimal(str(mrp)),
                        gst_logic=gst_logic,
                        available_quantity=qty,
                        total_quantity=qty,
                        status=status,
                    )
                db.add(row)
            db.commit()

    return _seed


@pytest.fixture
def seed_bookings(session_factory):
    def _seed(customer_mobile, *unit_keys):
        with session_factory() as db:
            db.add_all(
                EBooking(customer_mobile=customer_mobile, unit_key=key)
                for key in unit_keys
            )
            db.commit()

    return _seed
