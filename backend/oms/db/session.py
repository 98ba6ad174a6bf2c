import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from oms.core.config import settings

logger = logging.getLogger(__name__)


def configure_sqlite_locking(engine: AsyncEngine) -> None:
    """
    Make SQLite take the write lock when a transaction begins
    so check-then-write sequences from two requests cannot interleave
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_async_engine(
    settings.DATABASE_URI,
    echo=settings.SQL_DEBUG,
    future=True,
)
configure_sqlite_locking(engine)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    One service operation = one transaction
    commits on success, rolls everything back on any error
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
