"""SQLAlchemy implementation of the stock ledger."""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from ..models_tenant import StockUnit as StockUnitRow
from ..repos.stock_repo import StockLedger, StockUnit

logger = logging.getLogger("pos.stock")


def adjust_quantity(db: Session, unit_key: str, delta: int) -> bool:
    """Apply ``delta`` to ``unit_key`` inside ``db``'s transaction.

    The guard lives in the ``WHERE`` clause so a concurrent sale of the last
    unit cannot push the quantity below zero; the losing update matches no
    row and ``False`` is returned.
    """

    result = db.execute(
        update(StockUnitRow)
        .where(
            StockUnitRow.unit_key == unit_key,
            StockUnitRow.available_quantity + delta >= 0,
        )
        .values(available_quantity=StockUnitRow.available_quantity + delta)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _to_unit(row: StockUnitRow) -> StockUnit:
    return StockUnit(
        unit_key=row.unit_key,
        design_no=row.design_no,
        mrp=row.mrp,
        gst_logic=row.gst_logic,
        available_quantity=row.available_quantity,
        product_group=row.product_group or "",
        color=row.color or "",
        size=row.size or "",
        order_number=row.order_number,
        discount_type=row.discount_type,
        discount_value=row.discount_value,
        discount_start=row.discount_start,
        discount_end=row.discount_end,
    )


class SqlStockLedger(StockLedger):
    """Stock ledger backed by the ``stock_units`` table."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def find_unit(self, unit_key: str) -> StockUnit | None:
        with self.session_factory() as db:
            row = db.scalar(
                select(StockUnitRow).where(
                    StockUnitRow.unit_key == unit_key,
                    StockUnitRow.status == "active",
                )
            )
            return _to_unit(row) if row is not None else None

    def get_available(self, unit_key: str) -> int:
        with self.session_factory() as db:
            qty = db.scalar(
                select(StockUnitRow.available_quantity).where(
                    StockUnitRow.unit_key == unit_key
                )
            )
        return int(qty or 0)

    def adjust(self, unit_key: str, delta: int) -> bool:
        with self.session_factory() as db:
            ok = adjust_quantity(db, unit_key, delta)
            if not ok:
                db.rollback()
                logger.warning(
                    "stock adjust refused for %s (delta=%d): unknown unit or insufficient quantity",
                    unit_key,
                    delta,
                )
                return False
            db.commit()
        return True
