"""JSON log output for the billing service.

Customer contact details never reach the log sink: e-mail addresses and
Indian mobile numbers (with or without the ``+91`` prefix) are masked.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from ..middlewares.request_id import request_id_ctx

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+", re.I)
MOBILE_RE = re.compile(r"(?:\+91[\s-]?)?\b\d{10}\b")

# Optional ``extra=`` keys copied onto the JSON line.
EXTRA_FIELDS = ("route", "status", "invoice")


def _redact_pii(text: str) -> str:
    text = EMAIL_RE.sub("***", text)
    return MOBILE_RE.sub("***", text)


class RequestIdFilter(logging.Filter):
    """Attach request id from context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.req_id = request_id_ctx.get(None)
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "req_id": getattr(record, "req_id", None),
            "msg": _redact_pii(record.getMessage()),
        }
        for key in EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                data[key] = value
        if record.exc_info:
            data["exc"] = _redact_pii(self.formatException(record.exc_info))
        return json.dumps(data, default=str)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Send every log record to stderr as redacted JSON."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
