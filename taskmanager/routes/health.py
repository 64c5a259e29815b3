"""
Task Management API: Health Check Route
=======================================

What:  Liveness endpoint for probes and load balancers.
How:   Runs SELECT 1 against the database. Reachable database → 200
       "healthy"; otherwise 503 "unhealthy".

Exempt from rate limiting and authentication.
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from taskmanager import __version__
from taskmanager.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(request: Request):
    connected = await request.app.state.database.ping()
    body = HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        correlation_id=getattr(request.state, "correlation_id", ""),
        uptime_seconds=round(time.time() - _start_time, 2),
        database="connected" if connected else "disconnected",
    )
    return JSONResponse(
        status_code=200 if connected else 503,
        content=body.model_dump(mode="json", by_alias=True),
    )
