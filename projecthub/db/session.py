from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from projecthub.core.logger import get_logger
from projecthub.db.base import Base

logger = get_logger("db")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE clauses unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the async engine and session factory for one process.

    Constructed and torn down by the application lifespan; request handlers
    reach it through ``get_db_session``.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    def connect(self) -> None:
        if self.engine is not None:
            return
        self.engine = create_async_engine(self.url, echo=self.echo)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info("Database engine created", extra={"dialect": self.engine.dialect.name})

    async def create_all(self) -> None:
        # Model modules must be imported so their tables are registered on Base
        from projecthub.models import comment, project, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        async with self.session() as db:
            await db.execute(select(1))

    def session(self) -> AsyncSession:
        if self.session_factory is None:
            raise RuntimeError("Database.connect() has not been called")
        return self.session_factory()

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self.session_factory = None


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Database session dependency.
    Yields one session per request; uncommitted work is rolled back on error.
    """
    database: Database = request.app.state.db
    async with database.session() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
