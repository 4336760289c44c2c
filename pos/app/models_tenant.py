"""Store database models.

These models describe the schema used by the billing engine. They are kept
isolated from any application wiring so that they can be used in tests or
migrations independently."""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class StockUnit(Base):
    """Sellable stock unit identified by its 8-digit barcode alias."""

    __tablename__ = "stock_units"
    __table_args__ = (
        CheckConstraint("available_quantity >= 0", name="ck_stock_units_available"),
    )

    id = Column(Integer, primary_key=True)
    unit_key = Column(String(32), unique=True, nullable=False, index=True)
    design_no = Column(String, nullable=False)
    product_group = Column(String, nullable=False, default="")
    color = Column(String, nullable=False, default="")
    size = Column(String, nullable=False, default="")
    mrp = Column(Numeric(10, 2), nullable=False)
    gst_logic = Column(String(16), nullable=False, default="AUTO_5_18")
    available_quantity = Column(Integer, nullable=False, default=0)
    total_quantity = Column(Integer, nullable=False, default=0)
    order_number = Column(String, nullable=True)
    status = Column(String(16), nullable=False, default="active")
    discount_type = Column(String(16), nullable=True)  # percentage | flat
    discount_value = Column(Numeric(10, 2), nullable=True)
    discount_start = Column(Date, nullable=True)
    discount_end = Column(Date, nullable=True)


class SalesInvoice(Base):
    """Invoice header written at checkout."""

    __tablename__ = "sales_invoices"

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String, unique=True, nullable=False)
    invoice_date = Column(Date, nullable=False)
    customer_mobile = Column(String(10), nullable=False, index=True)
    customer_name = Column(String, nullable=False, default="")
    total_mrp = Column(Numeric(12, 2), nullable=False)
    total_discount = Column(Numeric(12, 2), nullable=False)
    taxable_value = Column(Numeric(12, 2), nullable=False)
    total_gst = Column(Numeric(12, 2), nullable=False)
    gst_type = Column(String(16), nullable=False)
    cgst_5 = Column(Numeric(12, 2), nullable=False, default=0)
    sgst_5 = Column(Numeric(12, 2), nullable=False, default=0)
    cgst_18 = Column(Numeric(12, 2), nullable=False, default=0)
    sgst_18 = Column(Numeric(12, 2), nullable=False, default=0)
    igst_5 = Column(Numeric(12, 2), nullable=False, default=0)
    igst_18 = Column(Numeric(12, 2), nullable=False, default=0)
    round_off = Column(Numeric(6, 2), nullable=False, default=0)
    net_payable = Column(Numeric(12, 2), nullable=False)
    payment_mode = Column(String(32), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    amount_pending = Column(Numeric(12, 2), nullable=False, default=0)
    payment_status = Column(String(16), nullable=False)  # paid | partial | pending
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "SalesInvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="SalesInvoiceItem.sr_no",
    )


class SalesInvoiceItem(Base):
    """Immutable snapshot of a unit sold on an invoice."""

    __tablename__ = "sales_invoice_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(
        Integer, ForeignKey("sales_invoices.id", ondelete="CASCADE"), nullable=False
    )
    sr_no = Column(Integer, nullable=False)
    unit_key = Column(String(32), nullable=False, index=True)
    design_no = Column(String, nullable=False)
    product_description = Column(String, nullable=False)
    hsn_code = Column(String(8), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    mrp = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    taxable_value = Column(Numeric(10, 2), nullable=False)
    gst_percentage = Column(Integer, nullable=False)
    gst_type = Column(String(16), nullable=False)
    cgst_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    cgst_amount = Column(Numeric(10, 2), nullable=False, default=0)
    sgst_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    sgst_amount = Column(Numeric(10, 2), nullable=False, default=0)
    igst_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    igst_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_value = Column(Numeric(10, 2), nullable=False)
    selling_price = Column(Numeric(10, 2), nullable=False)
    salesman_id = Column(String, nullable=True)
    delivered = Column(Boolean, nullable=False, default=True)
    delivery_date = Column(Date, nullable=True)
    expected_delivery_date = Column(Date, nullable=True)

    invoice = relationship("SalesInvoice", back_populates="items")


class EBooking(Base):
    """Unit reserved by a customer ahead of billing."""

    __tablename__ = "e_bookings"

    id = Column(Integer, primary_key=True)
    customer_mobile = Column(String(10), nullable=False, index=True)
    unit_key = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False, default="booked")  # booked | invoiced
    invoice_number = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class InvoiceCounter(Base):
    """Per-series sequence used by the atomic invoice procedure."""

    __tablename__ = "invoice_counters"

    series = Column(String, primary_key=True)
    last_number = Column(Integer, nullable=False, default=0)
