"""
Task Management API: Exception Boundary Stage
=============================================

What:  The single place where unhandled failures become HTTP responses.
How:   Classifies the failure to an `ErrorKind`, looks the status up in
       `STATUS_BY_KIND` and renders the uniform error envelope. The original
       failure is logged with its traceback; the client only ever sees the
       message for its kind (INTERNAL is always generic).
When:  Second stage, directly inside correlation assignment, so the
       correlation id is available and the response still gets its
       `X-Correlation-ID` header on the way out.

Never re-raises.
"""

import logging

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from taskmanager.exceptions import STATUS_BY_KIND, AppError, ErrorKind, classify, client_message
from taskmanager.middleware.responses import build_error_response

logger = logging.getLogger(__name__)


def render_failure(request: Request, exc: Exception) -> Response:
    kind = classify(exc)
    status_code = STATUS_BY_KIND[kind]

    if kind is ErrorKind.INTERNAL:
        logger.error(
            "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
        )
    else:
        context = exc.context if isinstance(exc, AppError) else {}
        logger.warning(
            "%s on %s %s: %s %s",
            kind.value,
            request.method,
            request.url.path,
            exc,
            context,
            exc_info=exc,
        )

    return build_error_response(request, status_code, client_message(kind, exc))


async def exception_boundary_stage(request: Request, call_next: RequestResponseEndpoint) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:
        return render_failure(request, exc)
