"""
RentalQ&A Backend — Database Engine and Session Management
============================================================

What:  Async SQLAlchemy engine, session factory, declarative base and
       startup connectivity helpers.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling. Sessions are opened
       per store operation (see services/store.py), not per request: every
       insert of a submission commits on its own.
Who:   Used by the SQLAlchemy question store, the health route and Alembic.

Connection Pooling Strategy:
    pool_size=10, max_overflow=5: at most 15 connections per worker
    pool_pre_ping: validates connections before use
    pool_recycle=3600: recycles connections every hour
"""

import logging
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    stop_after_attempt,
    wait_exponential_jitter,
)

from rentalqa.config import settings

logger = logging.getLogger(__name__)


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {
        # Echo SQL only when debugging; SQL logging is noisy
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine: AsyncEngine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: rows stay readable after the per-operation commit,
# which the store relies on when it converts ORM rows to schemas
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for --autogenerate.
    """
    pass


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def check_database(db_engine: AsyncEngine = engine) -> None:
    """Runs SELECT 1; raises whatever the driver raises when unreachable."""
    async with db_engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database(db_engine: AsyncEngine = engine) -> None:
    """
    What:  Blocks startup until the database answers SELECT 1.
    When:  Called once from the application lifespan.
    Why:   In docker-compose the API container usually starts before
           PostgreSQL accepts connections.
    How:   tenacity exponential backoff with jitter; the last error is
           re-raised when attempts are exhausted.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(settings.startup_db_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.startup_db_min_wait,
            max=settings.startup_db_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            await check_database(db_engine)
    logger.info("Database connection verified")


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
