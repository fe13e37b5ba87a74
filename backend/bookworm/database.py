"""
BookWorm Backend — Database Session Management
================================================

What:  Async SQLAlchemy engine, the per-request session manager and the
       FastAPI dependency that hands a session to route handlers.
How:   `DatabaseSessionManager` is built from `Settings` by `create_app()`
       and stored on `app.state.db`. For every request it checks out one
       pooled connection, configures it, yields the session, then commits
       or rolls back and releases the connection exactly once.
Who:   Route handlers via `DBSession`; the health route.
When:  Engine is created at app construction; sessions are created per request.

Request lifecycle:
    checkout (bounded by DB_POOL_TIMEOUT) → configure (time zone, strict mode)
        ├─ failure → close session, raise DatabaseError (no handler runs)
        └─ success → handler → commit | rollback → close (connection released)

Connection Pooling:
    pool_size + max_overflow is the hard ceiling on connections checked out
    at once; requests beyond it wait up to pool_timeout and then fail.
"""

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Dict, List, Tuple

from fastapi import Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from bookworm.config import Settings
from bookworm.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they share one metadata object,
    which Alembic reads for migrations.
    """
    pass


def _engine_options(settings: Settings) -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }
    # In-memory SQLite runs on a single static connection and takes no sizing.
    if ":memory:" not in settings.database_url:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
        )
    return options


_UTC_OFFSET = re.compile(r"^([+-])(\d{1,2}(?::?\d{2})?)$")


def postgres_time_zone(time_zone: str) -> str:
    """
    PostgreSQL reads a bare "+HH:MM" TimeZone as POSIX, where positive means
    west of Greenwich. Flip the sign of numeric offsets so "-8:00" means
    UTC-8 here as it does for MySQL. Zone names pass through unchanged.
    """
    match = _UTC_OFFSET.match(time_zone.strip())
    if not match:
        return time_zone
    sign, offset = match.groups()
    if not offset.strip("0:"):
        return "UTC"
    return ("-" if sign == "+" else "+") + offset


def session_setup_statements(dialect: str, time_zone: str) -> List[Tuple[str, Dict[str, Any]]]:
    """
    SQL run on every freshly checked-out connection, per dialect.

    PostgreSQL is strict by default and only needs the time zone; MySQL is
    switched to TRADITIONAL mode so invalid values raise instead of being
    silently truncated; SQLite gets foreign key enforcement.
    """
    if dialect == "postgresql":
        return [("SELECT set_config('TimeZone', :tz, false)", {"tz": postgres_time_zone(time_zone)})]
    if dialect in ("mysql", "mariadb"):
        return [
            ("SET SESSION sql_mode = 'TRADITIONAL'", {}),
            ("SET time_zone = :tz", {"tz": time_zone}),
        ]
    if dialect == "sqlite":
        return [("PRAGMA foreign_keys = ON", {})]
    return []


class DatabaseSessionManager:
    """
    Owns the connection pool and hands out one configured session per request.

    Invariants:
        - A session never outlives the request that opened it.
        - Every checked-out connection is released exactly once, on success,
          on handler failure, on configuration failure and on cancellation.
        - A request that cannot obtain a configured connection within
          `db_pool_timeout` seconds fails with DatabaseError before any
          handler code runs.
    """

    def __init__(self, settings: Settings):
        self._time_zone = settings.db_time_zone
        self._checkout_timeout = settings.db_pool_timeout
        self.engine = create_async_engine(settings.database_url, **_engine_options(settings))
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def _configure(self, session: AsyncSession) -> None:
        # session.connection() forces the pool checkout now, not at first query.
        connection: AsyncConnection = await session.connection()
        for statement, params in session_setup_statements(connection.dialect.name, self._time_zone):
            await connection.execute(text(statement), params)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a configured session; commit on success, roll back on error.

        Raises:
            DatabaseError: Checkout timed out or session configuration failed.
        """
        async with self.session_factory() as session:
            try:
                await asyncio.wait_for(self._configure(session), timeout=self._checkout_timeout)
            except Exception as exc:
                logger.error(
                    "Could not acquire a database connection: %s",
                    type(exc).__name__,
                    exc_info=True,
                )
                raise DatabaseError(
                    message="The service is temporarily unavailable. Please try again later.",
                    context={"error_type": type(exc).__name__},
                ) from exc

            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def checked_out(self) -> int:
        """Number of pooled connections currently held by requests."""
        pool = self.engine.sync_engine.pool
        checkedout = getattr(pool, "checkedout", None)
        return checkedout() if checkedout else 0

    async def ping(self) -> bool:
        """Run SELECT 1 on a short-lived connection; never raises."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as exc:
            logger.warning("Database ping failed: %s", type(exc).__name__)
            return False

    async def create_all(self) -> None:
        """Create every table known to the ORM (dev and tests; prod uses Alembic)."""
        import bookworm.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides the request's database session.

    FastAPI caches dependencies per request, so the auth gate and the
    handler share this one session and this one connection.
    """
    manager: DatabaseSessionManager = request.app.state.db
    async with manager.session() as session:
        yield session


# Function scope runs the commit after the handler returns and before the
# response starts, so a failed commit is still reported as an error.
DBSession = Depends(get_db_session, scope="function")
