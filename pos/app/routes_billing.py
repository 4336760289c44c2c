"""Billing counter routes."""

from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Request

from config import Settings
from .billing.cart import InvoiceTotals, compute_totals
from .billing.errors import BillingError, CartError, PersistenceError, ValidationError
from .billing.invoice_service import (
    Checkout,
    InvoiceResult,
    InvoiceService,
    summary_message,
)
from .obs import capture_exception
from .schemas import CartIn, CheckoutIn, DeliveryIn
from .utils.responses import error_response, ok

router = APIRouter(prefix="/billing")
logger = logging.getLogger("pos.api")

STOCK_CODES = {"STOCK", "STOCK_DECREMENT"}


def get_invoice_service(request: Request) -> InvoiceService:
    return request.app.state.invoice_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def _totals_payload(totals: InvoiceTotals) -> dict:
    return {
        "total_mrp": _money(totals.total_mrp),
        "total_discount": _money(totals.total_discount),
        "taxable_value": _money(totals.taxable_value),
        "total_gst": _money(totals.total_gst),
        "round_off": _money(totals.round_off),
        "net_payable": _money(totals.net_payable),
    }


def _result_payload(result: InvoiceResult) -> dict:
    return {
        "invoice_number": result.invoice_number,
        "invoice_id": result.invoice_id,
        "path": result.path,
        "net_payable": _money(result.net_payable),
        "amount_paid": _money(result.amount_paid),
        "amount_pending": _money(result.amount_pending),
        "payment_status": result.payment_status.value,
        "warnings": list(result.warnings),
        "message": summary_message(result),
    }


def _status_for(exc: BillingError) -> int:
    if isinstance(exc, (ValidationError, CartError)):
        return 400
    if exc.code in STOCK_CODES:
        return 409
    return 502


@router.post("/totals")
def cart_totals(
    payload: CartIn, settings: Settings = Depends(get_app_settings)
) -> dict:
    """Return the invoice totals for the posted cart lines."""

    totals = compute_totals(payload.to_cart(), settings.auto_rate_threshold)
    return ok(_totals_payload(totals))


@router.post("/invoices")
def create_invoice(
    payload: CheckoutIn,
    request: Request,
    service: InvoiceService = Depends(get_invoice_service),
):
    checkout = Checkout(
        cart=payload.to_cart(),
        customer_mobile=payload.customer_mobile,
        customer_name=payload.customer_name,
        payment_mode=payload.payment_mode,
        amount_paid=payload.amount_paid,
        gst_type=payload.gst_type,
        customer_state=payload.customer_state,
        expected_delivery_date=payload.expected_delivery_date,
        created_by=payload.created_by,
        salesman_id=payload.salesman_id,
    )
    try:
        result = service.generate(checkout)
    except BillingError as exc:
        status = _status_for(exc)
        logger.warning(
            "%s", exc.message, extra={"status": status, "route": request.url.path}
        )
        if isinstance(exc, PersistenceError) and status == 502:
            capture_exception(exc, code=exc.code)
        return error_response(
            status,
            exc.code,
            exc.message,
            details={"states": list(exc.states)} if exc.states else None,
            hint=exc.hint,
        )
    return ok(_result_payload(result))


@router.patch("/invoices/{invoice_id}/items/{unit_key}/delivery")
def mark_delivered(
    invoice_id: str,
    unit_key: str,
    payload: DeliveryIn,
    service: InvoiceService = Depends(get_invoice_service),
):
    if not service.mark_item_delivered(invoice_id, unit_key, payload.delivered_on):
        return error_response(404, "NOT_FOUND", "Invoice item not found")
    return ok({"invoice_id": invoice_id, "unit_key": unit_key, "delivered": True})
