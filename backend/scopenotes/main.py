"""
ScopeNotes Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn scopenotes.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware Chain:                                           │
    │  ┌──────────┐ ┌───────────┐ ┌─────────────────────────────┐  │
    │  │  Req ID  │→│  Logging  │→│ Request Context (ContextVar)│  │
    │  └──────────┘ └───────────┘ └─────────────────────────────┘  │
    │                                                              │
    │  Routes:                                                     │
    │  GET /api/notes · DELETE /api/notes/completed                │
    │  POST /api/notes/run-cleanup-task · GET /api/categories/{id} │
    │  GET /api/jobs/{id} · GET /health                            │
    │                                                              │
    │  Background:                                                 │
    │  JobQueue workers (started in lifespan, no request context)  │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Create the schema and seed the default category
    3. Start the job queue workers

    Shutdown:
    1. Stop the job queue (finish queued jobs)
    2. Dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from scopenotes import __version__
from scopenotes.bootstrap import seed_default_category
from scopenotes.config import settings
from scopenotes.database import async_session_factory, create_schema, dispose_engine
from scopenotes.exceptions import (
    JobDispatchError,
    NotFoundError,
    PersistenceError,
    ScopeNotesError,
    ScopeResolutionError,
)
from scopenotes.jobs import JobQueue
from scopenotes.jobs.cleanup import CleanupJob
from scopenotes.middleware.logging import RequestLoggingMiddleware
from scopenotes.middleware.request_context import RequestContextMiddleware
from scopenotes.middleware.request_id import RequestIDMiddleware, request_id_var
from scopenotes.routes import categories, health, jobs, notes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    When:   Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_job_queue() -> JobQueue:
    """Create the job queue with every job type the application submits."""
    job_queue = JobQueue(session_factory=async_session_factory)
    job_queue.register(CleanupJob)
    return job_queue


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, schema, seed, job queue. Shutdown: queue, engine.

    The job queue is started here, outside any request, so its workers never
    inherit a request context.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("ScopeNotes Backend starting up...")

    await create_schema()
    if settings.seed_on_startup:
        async with async_session_factory() as session:
            await seed_default_category(session)

    job_queue = build_job_queue()
    await job_queue.start()
    app.state.job_queue = job_queue

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("ScopeNotes Backend shutting down...")
    await job_queue.stop(drain=True)
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the ErrorResponse format.

    Handler hierarchy:
        ScopeResolutionError  → 400 Bad Request
        NotFoundError         → 404 Not Found
        PersistenceError      → 500 Internal Server Error (generic message)
        JobDispatchError      → 503 Service Unavailable
        ScopeNotesError       → 500 Internal Server Error
        Exception (fallback)  → 500 Internal Server Error
    """

    @app.exception_handler(ScopeResolutionError)
    async def handle_scope_resolution_error(request: Request, exc: ScopeResolutionError):
        """The category could not be determined; the caller must fix the header."""
        rid = request_id_var.get("")
        logger.warning("[%s] Scope resolution error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "scope_resolution_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(request: Request, exc: PersistenceError):
        """Store failure: generic message to the client, details logged."""
        rid = request_id_var.get("")
        logger.error("[%s] Persistence error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(JobDispatchError)
    async def handle_job_dispatch_error(request: Request, exc: JobDispatchError):
        rid = request_id_var.get("")
        logger.error("[%s] Job dispatch error: %s", rid, exc.message)
        return JSONResponse(
            status_code=503,
            content={
                "error": "job_queue_unavailable",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(ScopeNotesError)
    async def handle_application_error(request: Request, exc: ScopeNotesError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace is logged server-side only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="ScopeNotes API",
        description=(
            "Category-scoped notes with synchronous and background cleanup of "
            "completed notes. The category is taken from the CategoryId header."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS → RequestContext → route

    # Publishes the live request for ScopeSelector
    app.add_middleware(RequestContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(notes.router)
    app.include_router(categories.router)
    app.include_router(jobs.router)
    app.include_router(health.router)

    return app


app = create_app()
