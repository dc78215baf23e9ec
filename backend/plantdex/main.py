"""
PlantDex Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires the record store and identification client onto
       app.state, registers middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn plantdex.main:app`) and the test suite, which calls
       create_app() with a memory store and a fake identifier.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐  │
    │  │  Req ID      │→│ RateLim  │→│  Logging        │  │
    │  └──────────────┘ └──────────┘ └─────────────────┘  │
    │         → GZip → Session → CORS                     │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌─────────────┐  │
    │  │ /api/plants  │ │ /api/login…  │ │ GET /health │  │
    │  └──────────────┘ └──────────────┘ └─────────────┘  │
    │                                                     │
    │  app.state: store (RecordStore),                    │
    │             identifier (IdentificationClient)       │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Report incomplete configuration (logged, not fatal)
    3. Create tables when DATABASE_AUTO_CREATE is set

    Shutdown:
    1. Close the identification client's HTTP pool
    2. Close the record store (disposes the engine)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from plantdex import __version__
from plantdex.config import settings
from plantdex.exceptions import (
    ConflictError,
    ForbiddenError,
    IdentificationError,
    IdentificationTimeoutError,
    NotFoundError,
    PlantDexError,
    StorageError,
    UnauthenticatedError,
    ValidationError,
)
from plantdex.middleware.logging import RequestLoggingMiddleware
from plantdex.middleware.rate_limit import RateLimitMiddleware
from plantdex.middleware.request_id import RequestIDMiddleware, request_id_var
from plantdex.routes import auth, health, plants
from plantdex.services.identification import IdentificationClient, PlantIdClient
from plantdex.services.plant_service import validation_errors
from plantdex.stores import RecordStore, build_store

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s

    Called once from the lifespan, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Per-request noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    store: RecordStore = app.state.store
    identifier: IdentificationClient = app.state.identifier

    logger.info("=" * 60)
    logger.info("PlantDex Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Manual entries and health checks still work; keep serving
        logger.error("Configuration error: %s", str(e))

    if settings.database_auto_create and hasattr(store, "create_schema"):
        await store.create_schema()
        logger.info("Database schema created (DATABASE_AUTO_CREATE)")

    logger.info("Record store: %s", store.backend_name)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("PlantDex Backend shutting down...")
    await identifier.aclose()
    await store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside the middleware that set the ContextVar;
    # request.state shares the scope and still holds the id there.
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    rid = _request_id(request)
    content = {"error": error, "message": message, "request_id": rid}
    if details:
        content["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={"X-Request-ID": rid} if rid else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler table:
        ValidationError, RequestValidationError → 400 validation_error
        ConflictError                          → 400 conflict
        UnauthenticatedError                   → 401 unauthenticated
        ForbiddenError                         → 403 forbidden
        NotFoundError                          → 404 not_found
        IdentificationTimeoutError             → 500 identification_timeout
        IdentificationError                    → 500 identification_failed
        StorageError                           → 500 server_error
        PlantDexError, Exception               → 500 internal_server_error

    Security: store and driver details are logged server-side only, and a
    403 never names the record's owner.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return _error_response(request, 400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        # Framework-level body/path errors use the same 400 shape
        errors = validation_errors(exc)
        logger.warning("[%s] Request validation failed: %d error(s)", _request_id(request), len(errors))
        return _error_response(request, 400, "validation_error", "Invalid request", {"errors": errors})

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error_response(request, 400, "conflict", exc.message)

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(request: Request, exc: UnauthenticatedError):
        return _error_response(request, 401, "unauthenticated", exc.message)

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return _error_response(request, 403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(IdentificationTimeoutError)
    async def handle_identification_timeout(request: Request, exc: IdentificationTimeoutError):
        logger.error("[%s] Identification timed out: %s", _request_id(request), exc.message)
        return _error_response(
            request,
            500,
            "identification_timeout",
            exc.message,
            {"timeout_seconds": exc.timeout},
        )

    @app.exception_handler(IdentificationError)
    async def handle_identification_error(request: Request, exc: IdentificationError):
        logger.error("[%s] Identification failed: %s", _request_id(request), exc.message)
        details = {"upstream_message": exc.upstream_message} if exc.upstream_message else None
        return _error_response(request, 500, "identification_failed", exc.message, details)

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error(
            "[%s] Storage error: %s | Context: %s",
            _request_id(request),
            exc.message,
            exc.context,
        )
        return _error_response(request, 500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(PlantDexError)
    async def handle_plantdex_error(request: Request, exc: PlantDexError):
        logger.error("[%s] Unhandled application error: %s", _request_id(request), exc.message)
        return _error_response(request, 500, "internal_server_error", "An unexpected error occurred.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            _request_id(request),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    store: Optional[RecordStore] = None,
    identifier: Optional[IdentificationClient] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store:      record store; defaults to build_store() (STORE_BACKEND)
        identifier: identification client; defaults to PlantIdClient()

    Each call builds an independent app with its own collaborators, so
    tests never share state.
    """
    app = FastAPI(
        title="PlantDex API",
        description=(
            "Personal plant collection. Submit a photo and Plant.id names it, "
            "or enter the details by hand."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.store = store if store is not None else build_store()
    app.state.identifier = identifier if identifier is not None else PlantIdClient()

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition:
    # RequestID → RateLimit → Logging → GZip → Session → CORS
    # RequestID is outermost so even 429s carry X-Request-ID.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,  # session cookie
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie="plantdex_session",
        max_age=settings.session_max_age,
        same_site="lax",
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(plants.router)
    app.include_router(auth.router)
    app.include_router(health.router)

    return app


# uvicorn entry point: `uvicorn plantdex.main:app`
app = create_app()
