"""
Task Management API: Middleware Pipeline
========================================

What:  The fixed, ordered chain every request passes through.
How:   Each stage is a plain `async (request, call_next) -> Response`
       function. `build_pipeline()` wraps them in Starlette's
       BaseHTTPMiddleware and registers them in reverse, because the last
       middleware added is the outermost one.

Request order (reversed on the way out):
    1. correlation_stage          assign / echo X-Correlation-ID
    2. exception_boundary_stage   failures → uniform error envelope
    3. rate_limit_stage           fixed window per client, 429 on excess
    4. timing_stage               X-Processing-Time, slow request logging
    5. auth gate                  FastAPI dependencies at endpoint dispatch
"""

from typing import Sequence

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, DispatchFunction

from taskmanager.middleware.correlation import correlation_stage
from taskmanager.middleware.exception_boundary import exception_boundary_stage
from taskmanager.middleware.rate_limit import FixedWindowRateLimiter, rate_limit_stage
from taskmanager.middleware.timing import timing_stage

PIPELINE_ORDER = [
    correlation_stage,
    exception_boundary_stage,
    rate_limit_stage,
    timing_stage,
]


def build_pipeline(app: FastAPI, stages: Sequence[DispatchFunction] = PIPELINE_ORDER) -> None:
    """Register `stages` so that `stages[0]` sees the request first."""
    for stage in reversed(stages):
        app.add_middleware(BaseHTTPMiddleware, dispatch=stage)


__all__ = ["FixedWindowRateLimiter", "PIPELINE_ORDER", "build_pipeline"]
