"""
Task Management API: Diagnostic Routes
======================================

What:  Endpoints that deliberately trigger pipeline behaviour so it can be
       observed against a running deployment.
How:   Mounted only when `enable_diagnostics` is set. No authentication,
       and unlike /health they are NOT rate-limit exempt, so
       /diagnostics/load-test can be used to watch the limiter engage.

    GET /diagnostics/slow       sleeps `diagnostics_slow_delay_ms`, then 200
    GET /diagnostics/error      raises, which the exception boundary turns into a 500
    GET /diagnostics/load-test  cheap 200 for hammering
"""

import asyncio
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from taskmanager.schemas.common import DiagnosticResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/diagnostics", tags=["Diagnostics"])


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", "")


@router.get(
    "/slow",
    response_model=DiagnosticResponse,
    response_model_exclude_none=True,
    summary="Simulate a slow operation",
)
async def slow(request: Request):
    delay_ms = request.app.state.settings.diagnostics_slow_delay_ms
    logger.info("Slow diagnostic started (%dms)", delay_ms)

    await asyncio.sleep(delay_ms / 1000)

    logger.info("Slow diagnostic completed")
    return DiagnosticResponse(
        status="healthy_slow",
        correlation_id=_correlation_id(request),
        timestamp=datetime.now(timezone.utc),
        processing_time=f"{delay_ms}ms",
    )


@router.get(
    "/error",
    responses={500: {"description": "Always"}},
    summary="Raise an unhandled failure",
)
async def error(request: Request):
    logger.info("Error diagnostic called")
    raise RuntimeError("This is a test exception to demonstrate error handling middleware")


@router.get(
    "/load-test",
    response_model=DiagnosticResponse,
    response_model_exclude_none=True,
    responses={429: {"description": "Rate limit exceeded"}},
    summary="Rate limiter target",
)
async def load_test(request: Request):
    return DiagnosticResponse(
        status="ok",
        correlation_id=_correlation_id(request),
        timestamp=datetime.now(timezone.utc),
        tip="Call this endpoint repeatedly to test rate limiting",
    )
