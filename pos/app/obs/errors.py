"""Error reporting helpers."""

from __future__ import annotations

import logging
import os
from typing import Optional

import sentry_sdk

logger = logging.getLogger("obs")


def init_sentry(dsn: Optional[str] = None, env: Optional[str] = None) -> bool:
    """Initialize Sentry when a DSN is configured; return whether it is on."""
    dsn = dsn or os.getenv("ERROR_DSN")
    if not dsn:
        logger.info("ERROR_DSN not set; error sink disabled")
        return False
    # customer mobiles must not reach the error sink
    sentry_sdk.init(dsn=dsn, environment=env, send_default_pii=False)
    return True


def capture_exception(exc: Exception, *, code: Optional[str] = None) -> None:
    """Forward ``exc`` to Sentry tagged with its billing ``code``, else log it."""
    if not sentry_sdk.get_client().is_active():
        logger.error("unreported error [%s]", code or type(exc).__name__, exc_info=exc)
        return
    with sentry_sdk.new_scope() as scope:
        if code:
            scope.set_tag("billing.code", code)
        sentry_sdk.capture_exception(exc)
