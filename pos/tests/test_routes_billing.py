import logging
from datetime import date

import pytest
from fastapi.testclient import TestClient

from pos.app.main import create_app

MOBILE = "9876543210"


@pytest.fixture
def client(settings, session_factory):
    app = create_app(settings, session_factory=session_factory)
    return TestClient(app)


def _line(unit_key, mrp, **extra):
    return {"unit_key": unit_key, "design_no": f"D{unit_key}", "mrp": mrp, **extra}


def test_totals(client):
    resp = client.post(
        "/billing/totals",
        json={"items": [_line("A", 1000), _line("B", 3000)]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["data"] == {
        "total_mrp": "4000.00",
        "total_discount": "0.00",
        "taxable_value": "3494.75",
        "total_gst": "505.25",
        "round_off": "0.00",
        "net_payable": "4000.00",
    }


def test_create_invoice(client, seed_stock):
    seed_stock(("A", 1000, 1), ("B", 3000, 1))
    resp = client.post(
        "/billing/invoices",
        json={
            "customer_mobile": MOBILE,
            "customer_name": "Asha",
            "amount_paid": 1500,
            "items": [_line("A", 1000), _line("B", 3000, delivered=False)],
            "expected_delivery_date": "2030-01-15",
        },
        headers={"X-Request-ID": "req-1"},
    )
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "req-1"
    data = resp.json()["data"]
    number = f"INV{date.today().year}000001"
    assert data["invoice_number"] == number
    assert data["path"] == "atomic"
    assert data["payment_status"] == "partial"
    assert data["amount_pending"] == "2500.00"
    assert data["message"] == (
        f"Invoice {number} generated successfully! Pending: ₹2500.00"
    )

    resp = client.patch(
        f"/billing/invoices/{data['invoice_id']}/items/B/delivery",
        json={"delivered_on": "2030-01-14"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["delivered"] is True


def test_create_invoice_validation_error(client):
    resp = client.post(
        "/billing/invoices",
        json={"customer_mobile": "12345", "items": [_line("A", 1000)]},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "VALIDATION"
    assert body["error"]["hint"] == "Mobile number must have exactly 10 digits"


def test_create_invoice_empty_cart(client):
    resp = client.post("/billing/invoices", json={"customer_mobile": MOBILE})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Please add items to the bill"


def test_create_invoice_out_of_stock(client, seed_stock):
    seed_stock(("A", 1000, 0))
    resp = client.post(
        "/billing/invoices",
        json={"customer_mobile": MOBILE, "items": [_line("A", 1000)]},
    )
    assert resp.status_code == 409
    error = resp.json()["error"]
    assert error["code"] == "STOCK"
    assert error["details"]["states"][-1] == "failed"


def test_mark_delivery_unknown_item(client):
    resp = client.patch("/billing/invoices/999/items/ZZ/delivery", json={})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


def test_unknown_gst_logic_rejected(client):
    resp = client.post(
        "/billing/totals",
        json={"items": [_line("A", 1000, tax_logic="FLAT_12")]},
    )
    assert resp.status_code == 422


class _BrokenProcedure:
    def call(self, header, items):
        raise RuntimeError("disk 100% full, could not extend file")


def test_persistence_error_text_with_percent_is_logged(client, caplog):
    caplog.set_level(logging.WARNING, logger="pos.api")
    client.app.state.invoice_service.procedure = _BrokenProcedure()

    resp = client.post(
        "/billing/invoices",
        json={"customer_mobile": MOBILE, "items": [_line("A", 1000)]},
    )

    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "PERSISTENCE"
    messages = [r.getMessage() for r in caplog.records if r.name == "pos.api"]
    assert any("disk 100% full" in m for m in messages)
