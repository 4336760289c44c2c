# main.py

"""FastAPI application for the store billing counter.

Run with ``uvicorn pos.app.main:create_app --factory``.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings

from .billing.invoice_service import InvoiceService
from .db import create_session_factory
from .middlewares import RequestIdMiddleware
from .obs import capture_exception, init_sentry
from .obs.logging import configure_logging
from .repos_sqlalchemy import (
    SqlBookingsRepo,
    SqlInvoiceProcedure,
    SqlInvoiceStore,
    SqlStockLedger,
)
from .routes_billing import router as billing_router
from .utils.responses import err

logger = logging.getLogger("api")


def build_invoice_service(
    session_factory: sessionmaker, settings: Settings
) -> InvoiceService:
    """Wire the SQL collaborators into an :class:`InvoiceService`."""

    procedure = SqlInvoiceProcedure(
        session_factory,
        enabled=settings.atomic_procedure_enabled,
        prefix=settings.invoice_prefix,
    )
    return InvoiceService(
        store=SqlInvoiceStore(session_factory),
        ledger=SqlStockLedger(session_factory),
        bookings=SqlBookingsRepo(session_factory),
        procedure=procedure,
        settings=settings,
    )


def create_app(
    settings: Settings | None = None,
    session_factory: sessionmaker | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level.upper())
    init_sentry(settings.error_dsn, env=os.getenv("ENV"))

    if session_factory is None:
        session_factory, _ = create_session_factory(settings.database_url)

    app = FastAPI(title="POS billing")
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.invoice_service = build_invoice_service(session_factory, settings)
    app.add_middleware(RequestIdMiddleware)
    app.include_router(billing_router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            exc.detail,
            extra={"status": exc.status_code, "route": request.url.path},
        )
        return JSONResponse(
            err(exc.status_code, exc.detail), status_code=exc.status_code
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_error", extra={"status": 500, "route": request.url.path}
        )
        capture_exception(exc)
        return JSONResponse(err(500, "Internal Server Error"), status_code=500)

    return app
