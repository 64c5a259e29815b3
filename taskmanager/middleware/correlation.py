"""
Task Management API: Correlation ID Stage
=========================================

What:  Assigns every request a correlation ID and echoes it back in the
       `X-Correlation-ID` response header.
How:   Uses the inbound `X-Correlation-ID` when present and non-blank,
       otherwise a short random id. The id is stored in a ContextVar (read by
       `CorrelationIdFilter` for every log record) and on `request.state`
       (read by handlers and the error builder).
When:  Outermost pipeline stage. It never fails and always calls through.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-ID"

# Coroutine-local; "-" outside a request
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

logger = logging.getLogger("taskmanager.access")


class CorrelationIdFilter(logging.Filter):
    """Attaches `correlation_id` to every record passing through a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


def new_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


def resolve_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else X-Real-IP, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


async def correlation_stage(request: Request, call_next: RequestResponseEndpoint) -> Response:
    inbound = request.headers.get(CORRELATION_HEADER, "")
    cid = inbound.strip() or new_correlation_id()

    token = correlation_id_var.set(cid)
    request.state.correlation_id = cid
    client_ip = resolve_client_ip(request)
    try:
        logger.info(
            "Request started: %s %s from %s",
            request.method,
            request.url.path,
            client_ip,
            extra={"method": request.method, "path": request.url.path, "client_ip": client_ip},
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "Request failed before a response was produced: %s %s",
                request.method,
                request.url.path,
            )
            raise

        response.headers[CORRELATION_HEADER] = cid
        logger.info(
            "Request completed: %s %s -> %d",
            request.method,
            request.url.path,
            response.status_code,
            extra={"status": response.status_code},
        )
        return response
    finally:
        correlation_id_var.reset(token)
