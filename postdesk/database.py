"""
PostDesk Backend — Persistence Connector
========================================

What:  Async SQLAlchemy engine lifecycle, session factory, and the FastAPI
       session dependency.
How:   DatabaseConnector creates the engine on first use, verifies it by
       opening a connection (creating the `posts` table if needed) and then
       memoizes it. Concurrent first callers await one shared pending task.
       Failures surface as DatabaseConnectionError; the hosting application
       decides whether to abort startup or keep serving.
Who:   One connector per application, stored on `app.state.db` by
       create_app() and used by get_db_session() for every request.

Connection Pooling (server databases only):
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
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
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from postdesk.config import Settings
from postdesk.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    The shared metadata is what DatabaseConnector.connect() passes to
    create_all() when it opens the first connection.
    """
    pass


@dataclass(frozen=True)
class ConnectionResult:
    """Typed outcome of DatabaseConnector.initialize()."""

    ok: bool
    error: Optional[DatabaseConnectionError] = None


class DatabaseConnector:
    """
    Memoized, injectable provider of the application's database engine.

    Lifecycle:
        connect()     → engine (created once, shared by every caller)
        initialize()  → ConnectionResult, with tenacity retries
        ping()        → True when SELECT 1 succeeds
        dispose()     → closes pooled connections; connect() may run again
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        connect_max_attempts: int = 3,
        connect_min_wait: float = 1.0,
        connect_max_wait: float = 10.0,
        echo: bool = False,
    ):
        self.database_url = database_url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_pre_ping = pool_pre_ping
        self.connect_max_attempts = connect_max_attempts
        self.connect_min_wait = connect_min_wait
        self.connect_max_wait = connect_max_wait
        self.echo = echo

        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._pending: Optional[asyncio.Future] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseConnector":
        return cls(
            database_url=settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            connect_max_attempts=settings.db_connect_max_attempts,
            connect_min_wait=settings.db_connect_min_wait,
            connect_max_wait=settings.db_connect_max_wait,
            echo=settings.log_level == "DEBUG",
        )

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def _engine_options(self) -> dict:
        options = {
            "pool_pre_ping": self.pool_pre_ping,
            "echo": self.echo,
        }
        # SQLite uses a per-file pool that does not accept sizing arguments
        if make_url(self.database_url).get_backend_name() != "sqlite":
            options.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_recycle=3600,
            )
        return options

    async def _open(self) -> AsyncEngine:
        """Create the engine, verify it, and make sure the schema exists."""
        # Registers Post on Base.metadata before create_all runs
        from postdesk.models import post  # noqa: F401

        engine: Optional[AsyncEngine] = None
        try:
            engine = create_async_engine(self.database_url, **self._engine_options())
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except Exception as e:
            if engine is not None:
                await engine.dispose()
            logger.error("Database connection error: %s", str(e))
            raise DatabaseConnectionError(
                error=str(e),
                context={"error_type": type(e).__name__},
            ) from e

        logger.info(
            "Database connected: %s",
            make_url(self.database_url).render_as_string(hide_password=True),
        )
        return engine

    async def connect(self) -> AsyncEngine:
        """
        Return the shared engine, connecting on first use.

        Raises:
            DatabaseConnectionError: The database could not be reached. The
                failed attempt is dropped so the next call retries.
        """
        if self._engine is not None:
            return self._engine

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._open())
        pending = self._pending

        try:
            # shield: one cancelled waiter must not cancel the shared attempt
            engine = await asyncio.shield(pending)
        except DatabaseConnectionError:
            if self._pending is pending:
                self._pending = None
            raise

        if self._engine is None:
            self._engine = engine
            self._session_factory = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            self._pending = None
        return self._engine

    async def initialize(self) -> ConnectionResult:
        """
        Connect with exponential backoff and report the outcome.

        Called from the application lifespan. Never raises for connection
        failures; the caller inspects `ConnectionResult.ok`.
        """
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(DatabaseConnectionError),
                stop=stop_after_attempt(self.connect_max_attempts),
                wait=wait_exponential_jitter(
                    initial=self.connect_min_wait,
                    max=self.connect_max_wait,
                    jitter=1,
                ),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    await self.connect()
        except DatabaseConnectionError as e:
            logger.error(
                "Database unavailable after %d attempt(s): %s",
                self.connect_max_attempts,
                e.error,
            )
            return ConnectionResult(ok=False, error=e)
        return ConnectionResult(ok=True)

    async def session_factory(self) -> async_sessionmaker[AsyncSession]:
        await self.connect()
        return self._session_factory

    async def ping(self) -> bool:
        """Lightweight connectivity probe used by the health route."""
        try:
            engine = await self.connect()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False
        return True

    async def dispose(self) -> None:
        """
        Gracefully close all pooled connections.

        Called during application shutdown. The connector forgets the engine,
        so a later connect() builds a fresh one.
        """
        engine = self._engine
        self._engine = None
        self._session_factory = None
        if engine is not None:
            await engine.dispose()
            logger.info("Database engine disposed")


# ── Dependencies ──────────────────────────────────────────────────────────
def get_connector(request: Request) -> DatabaseConnector:
    """FastAPI dependency returning the connector owned by this application."""
    return request.app.state.db


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Takes the session factory from the application's connector
           (connecting on first use; DatabaseConnectionError → 500)
        2. Yields the session to the route handler
        3. On success: commits anything still pending (PostService commits
           its own writes so commit failures reach the error handlers)
        4. On error: rolls back and re-raises for the exception handlers
        5. Always: closes the session (returns connection to pool)
    """
    connector = get_connector(request)
    factory = await connector.session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
