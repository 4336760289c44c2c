import json
import logging
import sys

from fastapi import FastAPI
from fastapi.testclient import TestClient

from pos.app.middlewares.request_id import RequestIdMiddleware, request_id_ctx
from pos.app.obs.logging import JsonFormatter, RequestIdFilter, configure_logging


def _record(msg, *args, level=logging.INFO, **extra):
    record = logging.LogRecord("pos.billing", level, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _format(record):
    return json.loads(JsonFormatter().format(record))


def test_json_formatter_redacts_mobile_and_email():
    data = _format(_record("bill for %s <%s>", "9876543210", "asha@example.com"))
    assert data["msg"] == "bill for *** <***>"
    assert data["level"] == "INFO"
    assert data["logger"] == "pos.billing"


def test_json_formatter_redacts_prefixed_mobile():
    data = _format(_record("call +91 9876543210 back"))
    assert data["msg"] == "call *** back"


def test_json_formatter_keeps_invoice_numbers():
    data = _format(_record("invoice %s created", "INV2024000001", invoice="INV2024000001"))
    assert data["msg"] == "invoice INV2024000001 created"
    assert data["invoice"] == "INV2024000001"


def test_json_formatter_extra_fields_only_when_set():
    data = _format(_record("boom", level=logging.WARNING, route="/billing/invoices", status=409))
    assert data["route"] == "/billing/invoices"
    assert data["status"] == 409
    assert "invoice" not in data


def test_json_formatter_exception():
    try:
        raise RuntimeError("customer 9876543210 missing")
    except RuntimeError:
        record = logging.LogRecord(
            "pos.billing", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
        )
    data = _format(record)
    assert "RuntimeError" in data["exc"]
    assert "9876543210" not in data["exc"]


def test_request_id_filter():
    token = request_id_ctx.set("abc123")
    try:
        record = _record("hello")
        assert RequestIdFilter().filter(record) is True
        assert record.req_id == "abc123"
    finally:
        request_id_ctx.reset(token)
    record = _record("hello")
    RequestIdFilter().filter(record)
    assert record.req_id is None


def test_configure_logging_replaces_json_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        configure_logging("DEBUG")
        configure_logging("INFO")
        json_handlers = [
            h for h in root.handlers if isinstance(h.formatter, JsonFormatter)
        ]
        assert len(json_handlers) == 1
        assert root.level == logging.INFO
    finally:
        root.handlers[:] = before
        root.setLevel(level)


def test_request_id_middleware(caplog):
    caplog.set_level(logging.INFO, logger="pos.api")
    app = FastAPI()
    app.add_middleware(RequestIdMiddleware)

    @app.get("/ping")
    def ping():
        return {"req_id": request_id_ctx.get()}

    client = TestClient(app)
    resp = client.get("/ping", headers={"X-Request-ID": "till-7"})
    assert resp.headers["X-Request-ID"] == "till-7"
    assert "GET /ping" in caplog.text

    resp = client.get("/ping", headers={"X-Request-ID": "bad id!"})
    generated = resp.headers["X-Request-ID"]
    assert generated != "bad id!"
    assert len(generated) == 32
