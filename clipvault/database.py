"""Async SQLAlchemy database setup."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from clipvault.errors import StorageFailureError

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Async database connection manager.

    One instance is constructed by the application at startup and handed to
    every DAO; there is no module-level connection. Each session() scope is
    a single transaction, and the services never span a business operation
    across more than one statement-level scope.
    """

    def __init__(self, database_url: str):
        """Initialize database with connection URL.

        Args:
            database_url: SQLAlchemy database URL. If using sqlite:///, it will
                         be automatically converted to sqlite+aiosqlite:///.
        """
        is_sqlite = database_url.startswith("sqlite")
        if database_url.startswith("sqlite:///"):
            database_url = database_url.replace(
                "sqlite:///", "sqlite+aiosqlite:///"
            )

        # Reduce "database is locked" errors under concurrent writers
        connect_args = {"timeout": 30} if is_sqlite else {}

        self._engine: AsyncEngine = create_async_engine(
            database_url,
            echo=False,
            connect_args=connect_args,
        )
        if is_sqlite:
            event.listen(
                self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys
            )

        self._async_session: async_sessionmaker[AsyncSession] = (
            async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        )

    @property
    def engine(self) -> AsyncEngine:
        """Get the async engine instance."""
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope around a series of operations.

        Commits on success and rolls back on exception. Driver and ORM
        errors are re-raised as StorageFailureError so callers only deal
        with the service error taxonomy.

        Yields:
            AsyncSession: An async SQLAlchemy session.
        """
        async with self._async_session() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StorageFailureError(f"Metadata store error: {e}") from e
            except Exception:
                await session.rollback()
                raise

    async def init_db(self) -> None:
        """Create all tables from ORM models if they don't exist.

        For production, use Alembic migrations instead.
        """
        async with self._engine.begin() as conn:
            if conn.dialect.name == "sqlite":
                await conn.execute(text("PRAGMA journal_mode=WAL"))
                await conn.execute(text("PRAGMA busy_timeout=30000"))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    async def close(self) -> None:
        """Close database connections and dispose of the engine."""
        await self._engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
