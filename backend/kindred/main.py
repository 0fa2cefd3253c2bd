"""
Kindred Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn kindred.main:app`) and the test client.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌──────────┐ ┌─────────┐                 │
    │  │ Rate Limit │→│ Req ID   │→│ Logging │                 │
    │  └────────────┘ └──────────┘ └─────────┘                 │
    │                                                          │
    │  Routes:                                                 │
    │  /api/profiles /api/photos /api/interests /api/matches   │
    │  /api/credits /api/scoring /api/analytics /health        │
    │                                                          │
    │  Exception Handlers:                                     │
    │  400 validation/credits │ 401 │ 403 │ 404 │ 409 │ 429 │ 500 │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → ready
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from kindred import __version__
from kindred.config import settings
from kindred.database import dispose_engine
from kindred.exceptions import (
    AuthenticationError,
    ConcurrencyError,
    ConflictError,
    DatabaseError,
    DuplicateSwipeError,
    InsufficientCreditsError,
    KindredError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    ValidationError,
)
from kindred.middleware.logging import RequestLoggingMiddleware
from kindred.middleware.rate_limit import RateLimitMiddleware
from kindred.middleware.request_id import RequestIDMiddleware, request_id_var
from kindred.routes import analytics, credits, health, matches, profiles, scoring

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once at startup.

    Format: 2024-01-15T12:00:00 [INFO] kindred.services.swipe_service: message
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-operation chatter from these libraries
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
    logger.info("=" * 60)
    logger.info("Kindred Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health and the API still work, the operator sees the warning
        logger.warning("Configuration problem: %s", str(e))

    logger.info(
        "Daily credits: %d, score update attempts: %d",
        settings.daily_credits,
        settings.score_update_max_attempts,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Kindred Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside RequestIDMiddleware, after the ContextVar reset
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Build the standard {error, message, details, request_id} body."""
    content = {"error": error, "message": message, "request_id": _request_id(request)}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the KindredError hierarchy onto HTTP responses.

    Handler hierarchy (most specific class wins):
        InsufficientCreditsError → 400 insufficient_credits
        ValidationError          → 400 validation_error
        AuthenticationError      → 401 unauthorized
        PermissionDeniedError    → 403 forbidden
        NotFoundError            → 404 not_found
        DuplicateSwipeError      → 409 duplicate_swipe
        ConcurrencyError         → 409 concurrent_update
        ConflictError            → 409 conflict
        RateLimitExceededError   → 429 rate_limit_exceeded
        DatabaseError            → 500 server_error (context logged, never returned)
        KindredError (base)      → 500 server_error
        Exception (fallback)     → 500 internal_server_error
    """

    @app.exception_handler(InsufficientCreditsError)
    async def handle_insufficient_credits(request: Request, exc: InsufficientCreditsError):
        logger.info("[%s] Like refused, no credits: %s", _request_id(request), exc.context)
        return error_response(request, 400, "insufficient_credits", exc.message, exc.context)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return error_response(request, 400, "validation_error", exc.message, exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(request, 401, "unauthorized", exc.message)

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        logger.warning("[%s] Forbidden: %s", _request_id(request), exc.context)
        return error_response(request, 403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(DuplicateSwipeError)
    async def handle_duplicate_swipe(request: Request, exc: DuplicateSwipeError):
        return error_response(request, 409, "duplicate_swipe", exc.message, exc.context)

    @app.exception_handler(ConcurrencyError)
    async def handle_concurrency_error(request: Request, exc: ConcurrencyError):
        logger.warning("[%s] Score update contention: %s", _request_id(request), exc.context)
        return error_response(request, 409, "concurrent_update", exc.message, exc.context)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(request, 409, "conflict", exc.message, exc.context)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return error_response(
            request,
            429,
            "rate_limit_exceeded",
            exc.message,
            exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", _request_id(request), exc.message, exc.context
        )
        return error_response(
            request, 500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(KindredError)
    async def handle_kindred_error(request: Request, exc: KindredError):
        logger.error(
            "[%s] Unhandled application error %s: %s",
            _request_id(request),
            type(exc).__name__,
            exc.message,
        )
        return error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Kindred API",
        description=(
            "Dating-app backend: profiles, swipes, matches, chat and daily like credits. "
            "Swipes move each profile's desirability score along a diminishing-returns curve."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(profiles.router)
    app.include_router(matches.router)
    app.include_router(credits.router)
    app.include_router(scoring.router)
    app.include_router(analytics.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
