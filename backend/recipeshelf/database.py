"""
RecipeShelf Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, base model and FastAPI dependency.
How:   Creates an async engine with connection pooling, provides a session
       dependency that commits on success and rolls back on error.
Who:   Route handlers (via Depends), services (flush helper), Alembic (Base).
When:  Engine is created at module import; sessions are created per-request.

Transaction model:
    One session per request. Services only ever `flush()`: writes become
    visible inside the request (ids assigned, optimistic-lock checks run),
    and `get_db_session` commits once the handler returns. A multi-step
    mutation such as "create collection + link it to the owner" therefore
    commits or rolls back as a unit.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.engine import Result, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.orm.exc import StaleDataError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from recipeshelf.config import settings
from recipeshelf.exceptions import ConflictError, PersistenceError

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    """Pool sizing only applies to pooled server backends (not SQLite)."""
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if make_url(url).get_backend_name() != "sqlite":
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
# expire_on_commit=False: attributes stay readable after commit without
# triggering a lazy load outside the async context.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares one metadata object, which Alembic reads for --autogenerate.
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
        4. On error: rolls back the transaction
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


async def flush_or_raise(db: AsyncSession, resource: str) -> None:
    """
    Flush pending changes and translate ORM failures into app exceptions.

    StaleDataError  → ConflictError (the row's version moved under us)
    SQLAlchemyError → PersistenceError (details logged, never returned)
    """
    try:
        await db.flush()
    except StaleDataError as e:
        logger.warning("Optimistic lock conflict on %s: %s", resource, str(e))
        raise ConflictError(resource=resource) from e
    except SQLAlchemyError as e:
        logger.error("Database error while saving %s: %s", resource, str(e), exc_info=True)
        raise PersistenceError(
            message=f"Could not save the {resource}. Please try again.",
            context={"resource": resource, "error_type": type(e).__name__},
        ) from e


async def execute_or_raise(db: AsyncSession, statement: Any, resource: str) -> Result:
    """Execute a statement; SQLAlchemyError → PersistenceError (details logged, never returned)."""
    try:
        return await db.execute(statement)
    except StaleDataError as e:
        logger.warning("Optimistic lock conflict on %s: %s", resource, str(e))
        raise ConflictError(resource=resource) from e
    except SQLAlchemyError as e:
        logger.error("Database error while reading %s: %s", resource, str(e), exc_info=True)
        raise PersistenceError(
            message=f"Could not retrieve the {resource}. Please try again.",
            context={"resource": resource, "error_type": type(e).__name__},
        ) from e


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def ping_database() -> None:
    """Run `SELECT 1` on a pooled connection; raises on failure."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database() -> None:
    """
    Ping the database until it answers, with exponential backoff + jitter.

    When:  Application startup, where the database container may still be booting.
    Raises the last connection error once `db_connect_attempts` is exhausted.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(settings.db_connect_attempts),
        wait=wait_exponential_jitter(initial=1, max=settings.db_connect_wait),
        retry=retry_if_exception_type((OSError, SQLAlchemyError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            await ping_database()


async def dispose_engine() -> None:
    """Gracefully closes all connections in the pool (application shutdown)."""
    await engine.dispose()
