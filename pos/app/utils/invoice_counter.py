"""Utilities for managing invoice counters."""

from __future__ import annotations

from datetime import date

from sqlalchemy import func, select, text
from sqlalchemy.orm import Session

from ..models_tenant import SalesInvoice


def build_series(prefix: str, today: date | None = None) -> str:
    """Return the yearly series key for ``prefix``, e.g. ``INV2024``."""
    today = today or date.today()
    return f"{prefix}{today:%Y}"


def format_invoice_number(series: str, current: int) -> str:
    return f"{series}{current:06d}"


def next_invoice_number(db: Session, series: str) -> str:
    """Return the next invoice number for ``series``.

    The number is one past both the stored counter and the highest invoice
    already numbered in the series, so numbers issued by the sequential path
    are skipped on every call. The counter is incremented in the caller's
    transaction and nothing is committed here, so a rolled back invoice also
    rolls back its number.
    """
    highest = db.scalar(
        select(func.max(SalesInvoice.invoice_number)).where(
            SalesInvoice.invoice_number.like(f"{series}%")
        )
    )
    suffix = highest[len(series):] if highest else ""
    start = (int(suffix) if suffix.isdigit() else 0) + 1
    stmt = text(
        """
        INSERT INTO invoice_counters (series, last_number)
        VALUES (:series, :start)
        ON CONFLICT (series)
        DO UPDATE SET last_number = CASE
            WHEN invoice_counters.last_number + 1 > :start
            THEN invoice_counters.last_number + 1
            ELSE :start
        END
        RETURNING last_number
        """
    )
    current = db.execute(stmt, {"series": series, "start": start}).scalar_one()
    return format_invoice_number(series, current)
