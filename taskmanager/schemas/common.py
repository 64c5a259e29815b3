"""
Task Management API: Shared Response Schemas
============================================

What:  Error envelope, health and diagnostics payloads shared by the routers.

Error envelope (all non-2xx except validation 400s):
    {
        "error": {
            "message": "Resource not found: The requested item does not exist",
            "correlationId": "a1b2c3d4",
            "timestamp": "2024-01-15T12:00:00Z",
            "statusCode": 404
        }
    }

Validation 400s instead carry `{field: [messages]}`.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorDetail(BaseModel):
    model_config = _CAMEL

    message: str = Field(description="Human-readable error description")
    correlation_id: str = Field(description="Request correlation ID for log lookup")
    timestamp: datetime = Field(description="When the error was produced (UTC)")
    status_code: int = Field(description="HTTP status code, repeated for convenience")
    retry_after: Optional[int] = Field(
        default=None, description="Seconds until the client may retry (429 only)"
    )


class ErrorResponse(BaseModel):
    error: ErrorDetail


class HealthResponse(BaseModel):
    model_config = _CAMEL

    status: str = Field(description="healthy or unhealthy")
    version: str
    timestamp: datetime
    correlation_id: str
    uptime_seconds: float
    database: str = Field(description="connected or disconnected")


class DiagnosticResponse(BaseModel):
    model_config = _CAMEL

    status: str
    correlation_id: str
    timestamp: datetime
    processing_time: Optional[str] = Field(default=None, description="Simulated delay, e.g. 3000ms")
    tip: Optional[str] = None
