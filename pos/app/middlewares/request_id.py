"""Request correlation for the billing API.

Every request gets an id, taken from a well formed ``X-Request-ID`` header or
freshly generated. Log records pick it up through :data:`request_id_ctx` and
the id is echoed back on the response.
"""

import logging
import re
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Context variable used by log filter to inject request id
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

REQUEST_ID_RE = re.compile(r"[A-Za-z0-9._-]{1,64}")

logger = logging.getLogger("pos.api")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id and log one line per handled request."""

    async def dispatch(self, request: Request, call_next):
        supplied = request.headers.get("X-Request-ID", "")
        req_id = supplied if REQUEST_ID_RE.fullmatch(supplied) else uuid.uuid4().hex
        token = request_id_ctx.set(req_id)
        request.state.request_id = req_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "%s %s %.1fms",
                request.method,
                request.url.path,
                (time.perf_counter() - started) * 1000,
                extra={"route": request.url.path, "status": response.status_code},
            )
        finally:
            request_id_ctx.reset(token)
        response.headers["X-Request-ID"] = req_id
        return response
