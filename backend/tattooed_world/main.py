"""
Tattooed World Backend — FastAPI Application Factory
======================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn tattooed_world.main:app`) and the test suite, which
       builds a fresh app per test.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐   │
    │  │ Rate Limit │→│ Req ID   │→│ Logging  │→│ GZip/CORS│   │
    │  └────────────┘ └──────────┘ └──────────┘ └──────────┘   │
    │                                                          │
    │  Routes:                                                 │
    │  auth · artists · studios · flash · gallery · reviews    │
    │  favorites · messages · admin · geocoding · catalog      │
    │  health                                                  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ 400 validation │ 401 │ 403 │ 404 │ 409 │ 429       │  │
    │  │ 502 geocoding  │ 503 unavailable │ 500 database    │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging, configuration report, ready banner
    Shutdown:  stop a running geocoding batch and wait for its current
               studio to commit, then dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from tattooed_world import __version__
from tattooed_world.config import settings
from tattooed_world.database import dispose_engine
from tattooed_world.exceptions import (
    AuthenticationError,
    CircuitBreakerOpenError,
    ConflictError,
    DatabaseError,
    GeocodingError,
    GeocodingUnavailableError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    TattooedWorldError,
    ValidationError,
)
from tattooed_world.middleware.logging import RequestLoggingMiddleware
from tattooed_world.middleware.rate_limit import RateLimitMiddleware
from tattooed_world.middleware.request_id import RequestIDMiddleware, request_id_var
from tattooed_world.routes import (
    admin,
    artists,
    auth,
    catalog,
    favorites,
    flash,
    gallery,
    geocoding,
    health,
    messages,
    reviews,
    studios,
)
from tattooed_world.services.geocoding_batch import batch_controller

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging once for the whole process (API server and CLI).

    Format: 2026-01-15T12:00:00 [INFO] tattooed_world.services.geocoder: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise; our own access log covers requests
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
    logger.info("Tattooed World Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")
        # Keep serving: health checks and the public directory still work

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Tattooed World Backend shutting down...")

    if batch_controller.stop():
        logger.info("Waiting for the geocoding batch to finish its current studio...")
        await batch_controller.wait()

    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Any = None) -> Dict[str, Any]:
    return {
        "error": error,
        "message": message,
        "details": details,
        "request_id": request_id_var.get(""),
    }


def _request_validation_details(exc: RequestValidationError) -> List[Dict[str, str]]:
    details = []
    for err in exc.errors():
        # loc is ("body", "email") / ("query", "limit"); drop the source prefix
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc) or "request", "message": err.get("msg", "Invalid value")})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the shared error body
    {"error", "message", "details", "request_id"}.

    Starlette picks the handler registered for the closest class in the
    exception's MRO, so GeocodingUnavailableError (a GeocodingError) gets 503
    while other GeocodingErrors get 502.

    Internal details (SQL, stack traces) are logged, never returned.
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = _request_validation_details(exc)
        logger.warning("[%s] Invalid request: %s", request_id_var.get(""), details)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", "Validation failed", details),
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.details),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body("authentication_error", exc.message, exc.context or None),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        return JSONResponse(
            status_code=403,
            content=_error_body("permission_denied", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=409,
            content=_error_body("conflict", exc.message, exc.context or None),
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(GeocodingError)
    async def handle_geocoding_error(request: Request, exc: GeocodingError):
        logger.warning("[%s] Geocoding error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=502,
            content=_error_body("geocoding_error", exc.message, exc.context or None),
        )

    @app.exception_handler(GeocodingUnavailableError)
    async def handle_geocoding_unavailable(request: Request, exc: GeocodingUnavailableError):
        return JSONResponse(
            status_code=503,
            content=_error_body("service_unavailable", exc.message, exc.context or None),
        )

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=503,
            content=_error_body(
                "service_unavailable", exc.message, {"recovery_time": exc.recovery_time}
            ),
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", GENERIC_SERVER_ERROR),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Unhandled database failure", request_id_var.get(""), exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", GENERIC_SERVER_ERROR),
        )

    @app.exception_handler(TattooedWorldError)
    async def handle_domain_error(request: Request, exc: TattooedWorldError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", GENERIC_SERVER_ERROR),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True
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
    app = FastAPI(
        title="Tattooed World API",
        description=(
            "Marketplace API connecting tattoo artists, studios and clients: artist "
            "directory, studios and maps, flash designs, reviews, favorites and moderation."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS
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

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    for module in (
        auth,
        artists,
        studios,
        flash,
        gallery,
        reviews,
        favorites,
        messages,
        admin,
        geocoding,
        catalog,
        health,
    ):
        app.include_router(module.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
