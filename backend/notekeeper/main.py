"""
Notekeeper Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn notekeeper.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────┐ ┌────────┐ ┌─────────┐ ┌────────────┐     │
    │  │ CORS │→│ Req ID │→│ Logging │→│ Rate Limit │     │
    │  └──────┘ └────────┘ └─────────┘ └────────────┘     │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────────┐ ┌─────────────────────┐  │
    │  │ /api/notes[/{id}]    │ │ GET /health         │  │
    │  └──────────────────────┘ └─────────────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐  │
    │  │ Validation→400 │ NotFound→404 │ Store→500    │  │
    │  └──────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration
    3. Wait for the Note Store, create the schema if configured
    4. Connect the counter store and install the Admission Gate

    Shutdown:
    1. Close the counter store client
    2. Dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notekeeper import __version__
from notekeeper.config import settings
from notekeeper.database import create_schema, dispose_engine, wait_for_store
from notekeeper.exceptions import (
    CounterStoreError,
    InvalidIdentifierError,
    NotekeeperError,
    NotFoundError,
    RateLimitExceededError,
    StoreError,
    ValidationError,
)
from notekeeper.middleware.logging import RequestLoggingMiddleware
from notekeeper.middleware.rate_limit import RateLimitMiddleware
from notekeeper.middleware.request_id import RequestIDMiddleware, request_id_var
from notekeeper.redis_client import close_redis_client, create_redis_client
from notekeeper.routes import health, notes
from notekeeper.routes.frontend import build_frontend_router
from notekeeper.services.admission_gate import AdmissionGate

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (container runtimes collect it)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, config check, Note Store, counter store.
    Shutdown: close clients in reverse order.

    A store that cannot be reached at startup is logged, not fatal: the
    server still answers /health so orchestration can see what is wrong.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Notekeeper Backend %s starting up (%s mode)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    try:
        await wait_for_store()
        if settings.auto_create_schema:
            await create_schema()
        logger.info("Note Store ready")
    except Exception as e:
        logger.error("Note Store unreachable at startup: %s", str(e))

    redis_client = None
    if settings.rate_limit_enabled:
        redis_client = create_redis_client(settings.redis_url)
        app.state.admission_gate = AdmissionGate(
            redis_client,
            limit=settings.rate_limit_requests,
            window=settings.rate_limit_window,
            key_prefix=settings.rate_limit_key_prefix,
        )
        logger.info(
            "Admission Gate: %d requests / %ds, key strategy '%s'",
            settings.rate_limit_requests,
            settings.rate_limit_window,
            settings.rate_limit_key_strategy,
        )
    else:
        logger.warning("Rate limiting is disabled")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Notekeeper Backend shutting down...")
    if redis_client is not None:
        await close_redis_client(redis_client)
        app.state.admission_gate = None
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def _server_error(rid: str, error: str = "server_error") -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "error": error,
            "message": "An internal error occurred. Please try again later.",
            "request_id": rid,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        InvalidIdentifierError  → 400 Bad Request
        ValidationError         → 400 Bad Request (500 in legacy mode)
        RequestValidationError  → same as ValidationError
        NotFoundError           → 404 Not Found
        RateLimitExceededError  → 429 Too Many Requests
        StoreError              → 500 Internal Server Error
        CounterStoreError       → 500 Internal Server Error
        NotekeeperError (base)  → 500 Internal Server Error
        Exception (fallback)    → 500 Internal Server Error

    Internal details (SQL, driver messages, stack traces) are logged only.
    """

    def validation_response(request: Request, exc: ValidationError) -> JSONResponse:
        rid = _request_id(request)
        if settings.legacy_validation_status and not isinstance(exc, InvalidIdentifierError):
            logger.error("[%s] Validation error (legacy 500): %s", rid, exc.message)
            return _server_error(rid)
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return validation_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed bodies (bad JSON, wrong types) share the ValidationError contract."""
        errors = exc.errors()
        field = None
        if errors:
            loc = [str(part) for part in errors[0].get("loc", ()) if part != "body"]
            field = ".".join(loc) or None
        return validation_response(
            request,
            ValidationError(
                message="Request body is invalid",
                field=field,
                context={"errors": [e.get("msg", "") for e in errors]},
            ),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": _request_id(request),
            },
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": exc.message,
                "details": exc.context,
                "request_id": _request_id(request),
            },
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        rid = _request_id(request)
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return _server_error(rid)

    @app.exception_handler(CounterStoreError)
    async def handle_counter_store_error(request: Request, exc: CounterStoreError):
        rid = _request_id(request)
        logger.error("[%s] Counter store error: %s | Context: %s", rid, exc.message, exc.context)
        return _server_error(rid)

    @app.exception_handler(NotekeeperError)
    async def handle_app_error(request: Request, exc: NotekeeperError):
        rid = _request_id(request)
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return _server_error(rid)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _server_error(rid, error="internal_server_error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Middleware executes in REVERSE order of addition. Adding
    RateLimit → Logging → RequestID → CORS gives the execution order
    CORS → RequestID → Logging → RateLimit.
    """
    app = FastAPI(
        title="Notekeeper API",
        description="Create, read, update and delete notes.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.admission_gate = None

    # Last added runs first
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # CORS only in development: the dev server runs on another origin, the
    # production build is served by this app from the same origin.
    # Outermost, so 429/500 answers built by RateLimitMiddleware carry the headers.
    if not settings.is_production:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
        )

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(health.router)
    if settings.is_production:
        app.include_router(build_frontend_router(settings.frontend_dist))

    return app


# uvicorn expects `notekeeper.main:app` to be importable
app = create_app()


def run() -> None:
    """Console entry point: `notekeeper` / `python -m notekeeper`."""
    import uvicorn

    uvicorn.run(
        "notekeeper.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )
