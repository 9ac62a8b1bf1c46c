"""
PostDesk Backend — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance
       that owns one DatabaseConnector (on app.state.db).
Who:   Called by uvicorn (uvicorn postdesk.main:app), `python -m postdesk`,
       and the test suite (with a connector pointed at SQLite).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: Request ID → Logging → CORS            │
    │                                                     │
    │  Routes:  /posts  /posts/{id}  /health              │
    │                                                     │
    │  Exception Handlers:                                │
    │   PostDeskError → ERROR_STATUS_CODES (400/404/409/500)
    │   RequestValidationError → 400                      │
    │   Exception → 500                                   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → connect with retries → abort or continue
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from postdesk import __version__
from postdesk.config import settings
from postdesk.database import DatabaseConnector
from postdesk.exceptions import (
    InternalError,
    PostDeskError,
    ValidationError,
    status_code_for,
)
from postdesk.middleware.logging import RequestLoggingMiddleware
from postdesk.middleware.request_id import RequestIDMiddleware, request_id_var
from postdesk.routes import health, posts

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

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Connect to the database (tenacity retries inside initialize())
        3. On failure: abort if DB_REQUIRED_ON_STARTUP, otherwise keep
           serving; requests will retry the connection lazily

    Shutdown:
        1. Dispose database engine (close all pooled connections)
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("PostDesk Backend %s starting up...", __version__)

    connector: DatabaseConnector = app.state.db
    result = await connector.initialize()
    if not result.ok:
        if settings.db_required_on_startup:
            logger.critical("Database is required on startup; aborting.")
            raise result.error
        logger.error("Starting without a database connection; will retry on demand.")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("PostDesk Backend shutting down...")
    await connector.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(exc: PostDeskError, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """Render an application error with its mapped status code."""
    rid = request_id_var.get("")
    content = exc.to_body()
    content["request_id"] = rid
    headers = dict(headers or {})
    if rid:
        headers[RequestIDMiddleware.header_name] = rid
    return JSONResponse(status_code=status_code_for(exc), content=content, headers=headers)


def cors_headers(request: Request) -> Dict[str, str]:
    """
    CORS headers for responses built outside CORSMiddleware.

    The catch-all Exception handler runs in Starlette's outermost error
    middleware, so its response never passes back through CORSMiddleware.
    """
    origin = request.headers.get("origin")
    if not origin or origin not in settings.cors_origins_list:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Expose-Headers": "X-Request-ID, X-Total-Count",
        "Vary": "Origin",
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler table:
        PostDeskError           → status from ERROR_STATUS_CODES
        RequestValidationError  → 400 (body is not a JSON object)
        Exception (fallback)    → 500 InternalError body
    """

    @app.exception_handler(PostDeskError)
    async def handle_app_error(request: Request, exc: PostDeskError):
        rid = request_id_var.get("")
        status = status_code_for(exc)
        if status >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = {}
        for err in exc.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body"
            errors.setdefault(loc, err.get("msg", "Invalid value"))
        logger.warning("[%s] Malformed request: %s", request_id_var.get(""), errors)
        return error_response(ValidationError(message="Invalid request body", errors=errors))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Anything that escaped the service layer; traceback is logged only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(InternalError(error=str(exc)), headers=cors_headers(request))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(connector: Optional[DatabaseConnector] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        connector: Database connector to use. Defaults to one built from
                   settings; tests pass their own.
    """
    app = FastAPI(
        title="PostDesk API",
        description="CRUD API for blog posts.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.db = connector or DatabaseConnector.from_settings(settings)

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(posts.router)
    app.include_router(health.router)

    return app


# uvicorn expects `postdesk.main:app` to be importable
app = create_app()
