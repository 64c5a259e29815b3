"""
Task Management API: Performance Timer Stage
============================================

What:  Measures how long downstream handling takes and reports it.
How:   Starts a perf counter before dispatch; in a `finally` block it stops the
       clock, sets `X-Processing-Time: <ms>ms` and logs. Requests slower than
       `slow_request_threshold_ms` log at WARNING, slower than
       `critical_request_threshold_ms` at CRITICAL, and both emit a
       `SlowOperation` telemetry event.
When:  Innermost pipeline stage, wrapping endpoint dispatch.

On a failure the header is recorded on `request.state` so the exception
boundary's error response carries it.
"""

import logging
import time
from typing import Optional

from starlette.middleware.base import RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from taskmanager.middleware.responses import correlation_id_of, defer_headers

logger = logging.getLogger(__name__)

PROCESSING_TIME_HEADER = "X-Processing-Time"


async def timing_stage(request: Request, call_next: RequestResponseEndpoint) -> Response:
    settings = request.app.state.settings
    start = time.perf_counter()
    response: Optional[Response] = None
    try:
        response = await call_next(request)
        return response
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        header_value = f"{elapsed_ms}ms"
        if response is not None:
            response.headers[PROCESSING_TIME_HEADER] = header_value
        else:
            defer_headers(request, {PROCESSING_TIME_HEADER: header_value})

        status = response.status_code if response is not None else 500
        method, path = request.method, request.url.path
        logger.info("%s %s -> %d in %dms", method, path, status, elapsed_ms)

        if elapsed_ms > settings.critical_request_threshold_ms:
            logger.critical("Critical performance issue: %s %s took %dms", method, path, elapsed_ms)
        elif elapsed_ms > settings.slow_request_threshold_ms:
            logger.warning("Slow request detected: %s %s took %dms", method, path, elapsed_ms)

        if elapsed_ms > settings.slow_request_threshold_ms:
            request.app.state.telemetry.track_slow_operation(
                f"{method} {path}",
                elapsed_ms,
                {"CorrelationId": correlation_id_of(request), "StatusCode": status},
            )
