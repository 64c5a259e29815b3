"""
Task Management API: FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app(settings) builds the database, stores,
       services and rate limiter, keeps them on `app.state`, registers the
       middleware pipeline, exception handlers and routers.
Who:   Called by uvicorn (`uvicorn taskmanager.main:app`) and by tests,
       which pass their own Settings.

Middleware Chain (request order):
    CORS → correlation → exception boundary → rate limiter → timer → GZip
    → routing (auth gate dependencies → endpoint)

Lifecycle:
    Startup:
    1. Configure logging
    2. Create tables
    3. Seed demo data (when enabled and the database is empty)
    4. Start the rate limiter's counter sweep

    Shutdown:
    1. Stop the sweep
    2. Dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskmanager import __version__
from taskmanager.config import Settings, settings as default_settings
from taskmanager.database import Database
from taskmanager.exceptions import (
    STATUS_BY_KIND,
    AuthenticationError,
    PermissionDeniedError,
    client_message,
)
from taskmanager.middleware import PIPELINE_ORDER, FixedWindowRateLimiter, build_pipeline
from taskmanager.middleware.correlation import CORRELATION_HEADER, CorrelationIdFilter
from taskmanager.middleware.responses import build_error_response, build_validation_response
from taskmanager.routes import auth, diagnostics, health, tasks
from taskmanager.seed import seed_demo_data
from taskmanager.services.credential_service import CredentialVerifier
from taskmanager.services.task_service import TaskService
from taskmanager.services.telemetry import TelemetryService
from taskmanager.services.token_service import TokenService
from taskmanager.stores import TaskStore, UserStore

logger = logging.getLogger(__name__)

EXPOSED_HEADERS = [
    CORRELATION_HEADER,
    "X-Processing-Time",
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
    "Retry-After",
    "Location",
]


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(correlation_id)s] %(message)s

    The correlation id comes from `CorrelationIdFilter` on the handler, so
    every record (ours and third-party) carries it; "-" outside a request.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(correlation_id)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings
    database: Database = app.state.database
    limiter: FixedWindowRateLimiter = app.state.rate_limiter

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config.log_level)
    logger.info("Task Management API %s starting up", __version__)

    await database.create_schema()
    if config.seed_demo_data:
        await seed_demo_data(
            app.state.user_store,
            app.state.task_store,
            bcrypt_rounds=config.bcrypt_rounds,
        )

    limiter.start()
    logger.info(
        "Rate limit: %d requests per %g minutes",
        config.rate_limit_requests,
        config.rate_limit_window_minutes,
    )
    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Task Management API shutting down")
    await limiter.stop()
    await database.dispose()
    logger.info("Shutdown complete")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _field_name(loc) -> str:
    """('body', 'dueDate') → 'dueDate'; ('body', 17) → 'body'."""
    named = [part for part in loc[1:] if isinstance(part, str)]
    if named:
        return named[-1]
    return str(loc[0]) if loc else "request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handlers for failures produced at the routing layer.

    Handler hierarchy:
        AuthenticationError     → 401 + WWW-Authenticate: Bearer
        PermissionDeniedError   → 403
        RequestValidationError  → 400 {field: [messages]}
        StarletteHTTPException  → its status, uniform error envelope

    Everything else propagates to the exception boundary stage.
    """

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.warning("Authentication failed on %s: %s", request.url.path, exc.message)
        return build_error_response(
            request,
            STATUS_BY_KIND[exc.kind],
            client_message(exc.kind, exc),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        principal = getattr(request.state, "user", None)
        logger.warning(
            "Permission denied on %s %s for %s (requires %s)",
            request.method,
            request.url.path,
            principal.username if principal else "anonymous",
            exc.required_role,
        )
        return build_error_response(request, STATUS_BY_KIND[exc.kind], client_message(exc.kind, exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors: Dict[str, List[str]] = {}
        for error in exc.errors():
            errors.setdefault(_field_name(error.get("loc", ())), []).append(error.get("msg", "Invalid value"))
        logger.info("Malformed request on %s: %s", request.url.path, sorted(errors))
        return build_validation_response(errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return build_error_response(
            request,
            exc.status_code,
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    telemetry: Optional[TelemetryService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:  configuration for this instance; defaults to the
                   environment-loaded singleton.
        telemetry: event sink; defaults to the logging sink.
    """
    config = settings or default_settings

    app = FastAPI(
        title="Task Management API",
        description=(
            "Task tracking service with JWT authentication, role-based deletes, "
            "per-client rate limiting and declarative payload validation."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Collaborators ─────────────────────────────────────────────────────
    database = Database(config)
    telemetry = telemetry or TelemetryService()
    task_store = TaskStore(database)
    user_store = UserStore(database)

    app.state.settings = config
    app.state.database = database
    app.state.telemetry = telemetry
    app.state.task_store = task_store
    app.state.user_store = user_store
    app.state.task_service = TaskService(task_store)
    app.state.token_service = TokenService(config)
    app.state.credential_verifier = CredentialVerifier(user_store, telemetry)
    app.state.rate_limiter = FixedWindowRateLimiter.from_settings(config)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = outermost. GZip sits inside the pipeline, CORS outside it.
    app.add_middleware(GZipMiddleware, minimum_size=500)
    build_pipeline(app, PIPELINE_ORDER)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=EXPOSED_HEADERS,
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(tasks.router)
    app.include_router(health.router)
    if config.enable_diagnostics:
        app.include_router(diagnostics.router)

    return app


app = create_app()
