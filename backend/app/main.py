"""
Plateful Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                       FastAPI App                         │
    │                                                           │
    │  Middleware Chain:                                        │
    │  ┌────────────┐ ┌────────┐ ┌─────────┐ ┌──────────────┐   │
    │  │ Rate Limit │→│ Req ID │→│ Logging │→│ Session/CORS │   │
    │  └────────────┘ └────────┘ └─────────┘ └──────────────┘   │
    │                                                           │
    │  Routes:                                                  │
    │  /api/restaurants/*   /api/me/votes/*   /health           │
    │                                                           │
    │  Exception Handlers:                                      │
    │  Validation→400 │ Unauth→401 │ NotFound→404 │ Conflict→409 │
    │  RateLimit→429  │ DB→500     │ anything else→500          │
    └───────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import (
    DatabaseError,
    NotFoundError,
    PlatefulError,
    RateLimitExceededError,
    TransientConflictError,
    UnauthenticatedError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, me, restaurants, votes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called once during app startup, before any other initialization.
    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
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
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, configuration check, banner.
    Shutdown: dispose the database engine (closes pooled connections).
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Plateful Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: development runs use the defaults
        logger.warning("Configuration warning: %s", str(e))

    logger.info("Open-now timezone: %s", settings.open_now_timezone)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Plateful Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(
    error: str, message: str, details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "error": error,
        "message": message,
        "requestId": request_id_var.get(""),
    }
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        UnauthenticatedError    → 401 Unauthorized
        NotFoundError           → 404 Not Found
        TransientConflictError  → 409 Conflict (Retry-After)
        RateLimitExceededError  → 429 Too Many Requests
        DatabaseError           → 500 (generic message)
        PlatefulError (base)    → 500
        Exception (fallback)    → 500 (stack trace logged, never returned)
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(request: Request, exc: UnauthenticatedError):
        return JSONResponse(
            status_code=401,
            content=_error_body("unauthenticated", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(TransientConflictError)
    async def handle_conflict(request: Request, exc: TransientConflictError):
        logger.warning("[%s] Vote conflict: %s", request_id_var.get(""), exc.context)
        return JSONResponse(
            status_code=409,
            content=_error_body("conflict", exc.message),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(PlatefulError)
    async def handle_app_error(request: Request, exc: PlatefulError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Middleware executes in REVERSE order of addition, so the effective order
    is RateLimit → RequestID → Logging → Session → GZip → CORS.
    """
    app = FastAPI(
        title="Plateful API",
        description=(
            "Restaurant discovery: list, search and filter restaurants, "
            "and vote on your favourites."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    if settings.rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(restaurants.router)
    app.include_router(votes.router)
    app.include_router(me.router)
    app.include_router(health.router)

    return app


app = create_app()
