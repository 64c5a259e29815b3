"""
Task Management API: Error Response Builder
===========================================

What:  Builds the uniform JSON error envelope and carries headers that
       pipeline stages want on the final response.
How:   Stages that annotate responses call `defer_headers()` before calling
       downstream. The headers land in `request.state.deferred_headers`, so
       whichever layer ends up producing the response (the endpoint on
       success, the exception boundary on failure) can apply them.

Error envelope:
    {"error": {"message", "correlationId", "timestamp", "statusCode"[, "retryAfter"]}}
"""

from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from taskmanager.schemas.common import ErrorDetail, ErrorResponse


def correlation_id_of(request: Request) -> str:
    return getattr(request.state, "correlation_id", "") or ""


def defer_headers(request: Request, headers: Mapping[str, str]) -> None:
    deferred: Dict[str, str] = getattr(request.state, "deferred_headers", None) or {}
    deferred.update(headers)
    request.state.deferred_headers = deferred


def apply_deferred_headers(request: Request, response: Response) -> Response:
    for name, value in (getattr(request.state, "deferred_headers", None) or {}).items():
        if name not in response.headers:
            response.headers[name] = value
    return response


def build_error_response(
    request: Request,
    status_code: int,
    message: str,
    headers: Optional[Mapping[str, str]] = None,
    retry_after: Optional[int] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(
            message=message,
            correlation_id=correlation_id_of(request),
            timestamp=datetime.now(timezone.utc),
            status_code=status_code,
            retry_after=retry_after,
        )
    )
    response = JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=dict(headers or {}),
    )
    return apply_deferred_headers(request, response)


def build_validation_response(errors: Mapping[str, List[str]]) -> JSONResponse:
    """400 carrying `{field: [messages]}` for every failing field."""
    return JSONResponse(status_code=400, content={name: list(msgs) for name, msgs in errors.items()})
