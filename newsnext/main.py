"""
NewsNext Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       `app` at module level is what uvicorn serves
       (uvicorn newsnext.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware: RateLimit → RequestID → Logging → Headers       │
    │              → GZip → CORS                                   │
    │                                                              │
    │  Routes: /            /health        /uploads/{path}         │
    │          /api/v1/auth /api/v1/ads    /api/v1/payment         │
    │          /api/v1/users /api/v1/memos /api/v1/media           │
    │          /api/v1/analytics                                   │
    │                                                              │
    │  Errors: NewsNextError family → its status code              │
    │          RequestValidationError → 422                        │
    │          IntegrityError → 409, NoResultFound → 404,          │
    │          other SQLAlchemyError → 500, PyJWTError → 401,      │
    │          unknown route → 404 "Route not found"               │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration report, uploads directories
    Shutdown: wait briefly for in-flight GA4 events, dispose the engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import jwt
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from newsnext import __version__
from newsnext.config import settings
from newsnext.database import dispose_engine
from newsnext.exceptions import NewsNextError
from newsnext.middleware.headers import CrossOriginHeadersMiddleware
from newsnext.middleware.logging import RequestLoggingMiddleware
from newsnext.middleware.rate_limit import RateLimitMiddleware
from newsnext.middleware.request_id import RequestIDMiddleware, request_id_var
from newsnext.routes import ads, analytics, auth, health, media, memos, payments, uploads, users
from newsnext.services.analytics_service import analytics_service
from newsnext.services.file_service import file_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Root logger to stdout (Docker collects it); noisy libraries capped at WARNING."""
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
    logging.getLogger("stripe").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("NewsNext Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and non-payment routes still work
        logger.error("Configuration error: %s", e)

    file_service.ensure_directories()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("NewsNext Backend shutting down...")
    await analytics_service.drain()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": message,
            "details": jsonable_encoder(details) if details else None,
            "request_id": request_id_var.get(""),
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the JSON error envelope.

    4xx responses carry the exception context as `details`; 5xx responses
    never expose internals, the context goes to the log instead.
    """

    @app.exception_handler(NewsNextError)
    async def handle_app_error(request: Request, exc: NewsNextError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            return error_response(exc.status_code, exc.error_code, exc.message)
        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return error_response(exc.status_code, exc.error_code, exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return error_response(422, "validation_error", "Validation failed", errors)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("[%s] Integrity error: %s", request_id_var.get(""), exc.orig)
        return error_response(409, "conflict", "Duplicate entry")

    @app.exception_handler(NoResultFound)
    async def handle_no_result(request: Request, exc: NoResultFound):
        return error_response(404, "not_found", "Record not found")

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Database error: %s", request_id_var.get(""), exc, exc_info=True)
        return error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(jwt.PyJWTError)
    async def handle_token_error(request: Request, exc: jwt.PyJWTError):
        return error_response(401, "unauthenticated", "Invalid or expired token")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"success": False, "message": "Route not found"},
            )
        return error_response(exc.status_code, "http_error", str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="NewsNext API",
        description="News publishing backend: ads, payments, users, memos and media.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Executes in reverse order of addition: RateLimit runs first, CORS last

    cors_origins = (
        {"allow_origin_regex": ".*"}
        if settings.cors_allow_any_origin
        else {"allow_origins": settings.cors_origins_list}
    )
    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After", "Content-Range", "Accept-Ranges"],
        max_age=86400,
        **cors_origins,
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(CrossOriginHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(uploads.router)
    app.include_router(auth.router)
    app.include_router(ads.router)
    app.include_router(payments.router)
    app.include_router(users.router)
    app.include_router(memos.router)
    app.include_router(media.router)
    app.include_router(analytics.router)

    return app


app = create_app()
