"""
Newsdesk Backend — Database Session Management
================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Document storage:
    Entities are rows, but their image records and the embedded subcategory
    list are JSON columns. A row is therefore a document whose image parts
    are stored verbatim, and those parts are only ever replaced wholesale
    (JSON columns are not mutation-tracked).
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from newsdesk.config import settings
from newsdesk.exceptions import ConflictError, ValidationError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_SQLSTATE = "23505"


def _engine_options(database_url: str) -> Dict[str, Any]:
    """
    Pool options for the configured backend.

    SQLite (used in tests and local runs) has no server-side pool to size,
    so the pool arguments are only passed to client/server databases.
    """
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if database_url.startswith("sqlite"):
        return options
    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
    )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, which the
# services rely on when they serialise the entity they just saved
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they share one metadata object
    (used by Alembic and by create_all() in tests).
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_all() -> None:
    """
    Create every table known to the metadata.

    Used by tests and by local SQLite runs; deployed databases are managed
    through Alembic migrations instead.
    """
    # Models must be imported so they register with Base.metadata
    import newsdesk.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all() -> None:
    """Drop every table known to the metadata (test teardown)."""
    import newsdesk.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def dispose_engine() -> None:
    """Gracefully closes all connections in the pool (application shutdown)."""
    await engine.dispose()


def is_unique_violation(error: IntegrityError) -> bool:
    """True for duplicate-key failures (Postgres SQLSTATE 23505, SQLite UNIQUE)."""
    if getattr(error.orig, "sqlstate", None) == UNIQUE_VIOLATION_SQLSTATE:
        return True
    return "unique" in str(error.orig).lower()


async def flush_or_conflict(session: AsyncSession, field: str) -> None:
    """
    Flush pending writes, turning a unique-constraint violation into a 409.

    The pre-checks in the services catch the common case; this covers two
    requests racing for the same name, slug or email. Any other integrity
    failure (NOT NULL, foreign key) is a 400 for the request body.
    """
    try:
        await session.flush()
    except IntegrityError as e:
        if is_unique_violation(e):
            logger.info("Unique constraint rejected write on '%s': %s", field, str(e.orig))
            raise ConflictError(message=f"{field} is already in use", field=field)
        logger.warning("Integrity check rejected write: %s", str(e.orig))
        raise ValidationError(message="Request violates a data integrity rule")
