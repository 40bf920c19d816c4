from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import models  # noqa: F401  registers the tables on SQLModel.metadata
from config import DATABASE_URL, SQL_ECHO


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # vote rows rely on ON DELETE CASCADE, which SQLite ignores by default
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: Optional[str] = None, **kwargs) -> AsyncEngine:
    url = url or DATABASE_URL
    kwargs.setdefault("echo", SQL_ECHO)
    engine = create_async_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine()
SessionLocal = build_sessionmaker(engine)


async def create_db_and_tables(bind: Optional[AsyncEngine] = None) -> None:
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session
