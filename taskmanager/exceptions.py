"""
Task Management API: Error Kinds and Exception Hierarchy
========================================================

What:  Defines the closed set of failure kinds the API can report and the
       application exceptions that carry them.
How:   Every exception carries an `ErrorKind`. The exception boundary maps the
       kind (never the concrete class) to an HTTP status through
       `STATUS_BY_KIND`.
Who:   Raised by services, the auth gate and the rate limiter; translated by
       the exception boundary middleware and the routing-layer handlers.

Exception Hierarchy:
    AppError (base)                      kind
    ├── MissingArgumentError             MISSING_ARGUMENT  → 400
    ├── InvalidArgumentError             INVALID_ARGUMENT  → 400
    ├── PermissionDeniedError            FORBIDDEN         → 403
    ├── ResourceNotFoundError            NOT_FOUND         → 404
    ├── ConflictError                    CONFLICT          → 409
    ├── OperationTimeoutError            TIMEOUT           → 408
    ├── AuthenticationError              UNAUTHENTICATED   → 401
    └── RateLimitExceededError           RATE_LIMITED      → 429

    Anything else is classified as INTERNAL → 500 with a generic message.
"""

import enum
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    """Closed set of failure categories reported to API clients."""

    MISSING_ARGUMENT = "missing_argument"
    INVALID_ARGUMENT = "invalid_argument"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"
    INTERNAL = "internal"
    RATE_LIMITED = "rate_limited"
    UNAUTHENTICATED = "unauthenticated"
    VALIDATION = "validation"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.MISSING_ARGUMENT: 400,
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TIMEOUT: 408,
    ErrorKind.CONFLICT: 409,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INTERNAL: 500,
}

# Client-facing messages per kind. Kinds that may echo the exception message
# prefix it; INTERNAL never does.
MESSAGE_BY_KIND: Dict[ErrorKind, str] = {
    ErrorKind.MISSING_ARGUMENT: "Invalid input: Required parameter is null",
    ErrorKind.INVALID_ARGUMENT: "Invalid input",
    ErrorKind.VALIDATION: "Validation failed",
    ErrorKind.UNAUTHENTICATED: "Authentication required",
    ErrorKind.FORBIDDEN: "Access denied: You don't have permission to perform this action",
    ErrorKind.NOT_FOUND: "Resource not found: The requested item does not exist",
    ErrorKind.TIMEOUT: "Request timeout: The operation took too long to complete",
    ErrorKind.CONFLICT: "Operation failed",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded",
    ErrorKind.INTERNAL: "An internal server error occurred. Please try again later.",
}


class AppError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        kind:     Failure category used for status mapping
        message:  Description of what went wrong (may be shown to clients
                  for INVALID_ARGUMENT and CONFLICT)
        context:  Additional debug info (logged but NOT returned to client)
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class MissingArgumentError(AppError):
    """A required value was absent (e.g. a null payload field caught late)."""

    kind = ErrorKind.MISSING_ARGUMENT

    def __init__(self, argument: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["argument"] = argument
        super().__init__(message=f"'{argument}' is required", context=ctx)
        self.argument = argument


class InvalidArgumentError(AppError):
    """A value was present but malformed (bad enum name, bad input shape)."""

    kind = ErrorKind.INVALID_ARGUMENT


class PermissionDeniedError(AppError):
    """Authenticated caller lacks the role required by the endpoint."""

    kind = ErrorKind.FORBIDDEN

    def __init__(
        self,
        message: str = "Access denied: You don't have permission to perform this action",
        required_role: Optional[str] = None,
    ):
        ctx = {"required_role": required_role} if required_role else {}
        super().__init__(message=message, context=ctx)
        self.required_role = required_role


class ResourceNotFoundError(AppError):
    """
    Raised when a lookup outside the task service finds nothing.

    The task service itself reports absence as a `None` return value; this
    exception is for callers that treat absence as exceptional.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx: Dict[str, Any] = {"resource": resource}
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(AppError):
    """The operation is not valid for the resource's current state."""

    kind = ErrorKind.CONFLICT


class OperationTimeoutError(AppError):
    """An upstream operation exceeded its time budget."""

    kind = ErrorKind.TIMEOUT


class AuthenticationError(AppError):
    """
    Missing, malformed, expired or otherwise unverifiable bearer token.

    Rendered by the auth gate handler as 401 with `WWW-Authenticate: Bearer`.
    """

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message)


class RateLimitExceededError(AppError):
    """Client exceeded the fixed-window request limit."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: int, limit: int, window_minutes: float):
        message = (
            f"Rate limit exceeded. Maximum {limit} requests per "
            f"{window_minutes:g} minutes."
        )
        super().__init__(message=message, context={"retry_after": retry_after})
        self.retry_after = retry_after


def classify(exc: BaseException) -> ErrorKind:
    """Reduce any failure to the `ErrorKind` used for status mapping."""
    if isinstance(exc, AppError):
        return exc.kind
    if isinstance(exc, TimeoutError):
        return ErrorKind.TIMEOUT
    return ErrorKind.INTERNAL


def client_message(kind: ErrorKind, exc: Optional[BaseException] = None) -> str:
    """
    Message safe to return to API clients for a failure of `kind`.

    INVALID_ARGUMENT and CONFLICT append the application error's own message
    (they describe the client's input); every other kind uses its fixed text.
    """
    base = MESSAGE_BY_KIND[kind]
    if kind in (ErrorKind.INVALID_ARGUMENT, ErrorKind.CONFLICT) and isinstance(exc, AppError):
        return f"{base}: {exc.message}"
    if kind in (ErrorKind.UNAUTHENTICATED, ErrorKind.RATE_LIMITED) and isinstance(exc, AppError):
        return exc.message
    return base
