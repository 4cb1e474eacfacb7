"""Database engine, persistence adapter and request dependency."""

import logging
from pathlib import Path
from typing import Any, Optional

from fastapi import Request
from sqlalchemy import Executable, event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all models."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Cascading deletes only work when SQLite enforces foreign keys."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Thin persistence adapter over an async SQLAlchemy engine.

    Exposes three primitives: ``execute`` (no result), ``fetch_one`` and
    ``fetch_many``. Every call runs in its own session and commits on its own;
    there is no transaction spanning several calls.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_async_engine(url, echo=echo)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_maker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def execute(self, statement: Executable) -> None:
        """Run a statement that returns nothing (INSERT, UPDATE, DELETE)."""
        async with self.session_maker() as session:
            await session.execute(statement)
            await session.commit()

    async def fetch_one(self, statement: Executable) -> Optional[Any]:
        """Return the first result of a query, or None when nothing matches."""
        async with self.session_maker() as session:
            result = await session.execute(statement)
            return result.scalars().first()

    async def fetch_many(self, statement: Executable) -> list[Any]:
        """Return all results of a query in order."""
        async with self.session_maker() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def create_schema(self) -> None:
        """Create all tables and indices that do not exist yet."""
        # Models must be imported so their tables are registered on Base.metadata
        from diary_api.db import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        await self.engine.dispose()
        logger.info("Database connection closed")


def ensure_database_dir(database_path: str) -> None:
    """Create the directory holding the SQLite file if it is missing."""
    if database_path == ":memory:":
        return
    Path(database_path).parent.mkdir(parents=True, exist_ok=True)


async def init_db(database_url: str, database_path: Optional[str] = None) -> Database:
    """Open the store and make sure the schema exists."""
    if database_path:
        ensure_database_dir(database_path)
    db = Database(database_url)
    await db.create_schema()
    return db


def get_db(request: Request) -> Database:
    """Dependency returning the application's database adapter."""
    return request.app.state.db
