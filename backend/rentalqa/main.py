"""
RentalQ&A Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires one QuestionStore and one QueryCache into the
       questions query and the submission mutation, registers middleware,
       exception handlers and routes.
Who:   uvicorn (uvicorn rentalqa.main:app) and the test suite, which passes
       its own in-memory store.

Lifecycle:
    Startup:
    1. Configure logging
    2. Wait for the database (tenacity backoff), unless a custom store is wired
    3. Seed sample questions when SEED_SAMPLE_DATA is set
    Shutdown:
    1. Dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from rentalqa import __version__
from rentalqa.config import settings
from rentalqa.database import async_session_factory, dispose_engine, wait_for_database
from rentalqa.exceptions import (
    DataStoreError,
    RentalQAError,
    SubmissionError,
    ValidationError,
)
from rentalqa.middleware.logging import RequestLoggingMiddleware
from rentalqa.middleware.request_id import RequestIDMiddleware
from rentalqa.routes import health, questions
from rentalqa.services.aggregation import QuestionsQuery
from rentalqa.services.query_cache import QueryCache
from rentalqa.services.seed import seed_sample_questions
from rentalqa.services.store import QuestionStore, SqlAlchemyQuestionStore
from rentalqa.services.submission import CreateQuestionMutation, Notifier, log_notification

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("RentalQ&A Backend %s starting up...", __version__)

    if app.state.uses_database:
        await wait_for_database()

    if settings.seed_sample_data:
        await seed_sample_questions(app.state.store)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("RentalQ&A Backend shutting down...")
    if app.state.uses_database:
        await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler hierarchy:
        ValidationError  → 400 Bad Request
        DataStoreError   → 503 Service Unavailable (list can be retried)
        SubmissionError  → 500 Internal Server Error
        RentalQAError    → 500 (catch-all for custom)
        Exception        → 500 (unexpected)

    Store error text is logged server-side only; responses carry the stage
    or step name and the error class.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = _request_id(request)
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

    @app.exception_handler(DataStoreError)
    async def handle_data_store_error(request: Request, exc: DataStoreError):
        rid = _request_id(request)
        logger.error("[%s] Data store error in %s: %s", rid, exc.stage, exc.original)
        return JSONResponse(
            status_code=503,
            content={
                "error": "data_store_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(SubmissionError)
    async def handle_submission_error(request: Request, exc: SubmissionError):
        rid = _request_id(request)
        logger.error("[%s] Submission failed at %s: %s", rid, exc.step, exc.original)
        return JSONResponse(
            status_code=500,
            content={
                "error": "submission_failed",
                "message": "Failed to submit your question. Please try again.",
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(RentalQAError)
    async def handle_app_error(request: Request, exc: RentalQAError):
        rid = _request_id(request)
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
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    store: Optional[QuestionStore] = None,
    cache: Optional[QueryCache] = None,
    notify: Notifier = log_notification,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store:  data-store boundary; defaults to SQLAlchemy on settings.database_url
        cache:  query cache shared by the list and submit paths
        notify: receives the submission toasts
    """
    app = FastAPI(
        title="RentalQ&A API",
        description=(
            "Community-curated questions between tenants and landlords, "
            "with expected and real responses."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    app.state.uses_database = store is None
    if store is None:
        store = SqlAlchemyQuestionStore(async_session_factory)
    if cache is None:
        cache = QueryCache(stale_after=settings.query_stale_seconds)
    app.state.store = store
    app.state.cache = cache
    app.state.questions_query = QuestionsQuery(app.state.store, app.state.cache)
    app.state.create_question = CreateQuestionMutation(
        app.state.store, app.state.cache, notify=notify,
    )

    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(questions.router)
    app.include_router(health.router)

    return app


# uvicorn expects `rentalqa.main:app` to be importable
app = create_app()
