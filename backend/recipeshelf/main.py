"""
RecipeShelf Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (uvicorn recipeshelf.main:app) and the test client.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  RateLimit → RequestID → Logging → GZip/CORS │
    │                                                          │
    │  Routers:     /api/images  /api/recipes  /api/collections │
    │               /api/users   /health                       │
    │                                                          │
    │  Exception handlers:                                     │
    │    Validation→400  Unauthorized→401  Forbidden→403       │
    │    NotFound→404    Conflict→409      RateLimit→429       │
    │    Persistence→500                                       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config validation → database ping (tenacity retry)
    Shutdown: dispose the engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from recipeshelf import __version__
from recipeshelf.config import settings
from recipeshelf.database import dispose_engine, wait_for_database
from recipeshelf.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    RateLimitExceededError,
    RecipeShelfError,
    UnauthorizedError,
    ValidationError,
)
from recipeshelf.middleware.logging import RequestLoggingMiddleware
from recipeshelf.middleware.rate_limit import RateLimitMiddleware
from recipeshelf.middleware.request_id import RequestIDMiddleware, request_id_var
from recipeshelf.routes import collections, health, images, recipes, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout
    (Docker captures it). Called once, first thing in the lifespan.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

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
    logger.info("RecipeShelf Backend %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    # The server still starts when the database is down; /health reports it.
    try:
        await wait_for_database()
        logger.info("Database reachable")
    except (OSError, SQLAlchemyError) as e:
        logger.error("Database unreachable after %d attempts: %s",
                     settings.db_connect_attempts, str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("RecipeShelf Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

        ValidationError / RequestValidationError → 400
        UnauthorizedError                        → 401
        ForbiddenError                           → 403
        NotFoundError                            → 404
        ConflictError                            → 409
        RateLimitExceededError                   → 429
        PersistenceError, RecipeShelfError       → 500 (generic message)
        Exception                                → 500 (stack trace logged only)
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors: Dict[str, str] = {}
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", ()) if part != "body"]
            errors.setdefault(".".join(loc) or "body", error.get("msg", "Invalid value"))
        return JSONResponse(
            status_code=400,
            content=_error_body(
                "validation_error",
                f"Request validation failed: {', '.join(sorted(errors))}",
                {"errors": errors},
            ),
        )

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        return JSONResponse(
            status_code=401,
            content=_error_body("unauthorized", exc.message),
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.info("[%s] Forbidden: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=403,
            content=_error_body("forbidden", exc.message),
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
            content=_error_body("conflict", exc.message, exc.context),
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        rid = request_id_var.get("")
        logger.error("[%s] Persistence error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(RecipeShelfError)
    async def handle_application_error(request: Request, exc: RecipeShelfError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
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
        title="RecipeShelf API",
        description=(
            "Recipe sharing backend: recipes with ratings and categories, "
            "text search, personal collections and saved recipes."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID, logging, RateLimit.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(images.router)
    app.include_router(recipes.router)
    app.include_router(collections.router)
    app.include_router(users.router)
    app.include_router(health.router)

    return app


app = create_app()
