"""Engine, session factory and transaction scope for the conversion store."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tunebridge.config import get_logger, settings

from .db_models import TunebridgeDBBase

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 30_000


def _apply_sqlite_pragmas(dbapi_connection, _connection_record) -> None:
    # Concurrent claims wait on the write lock instead of failing immediately
    cursor = dbapi_connection.cursor()
    cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
    cursor.close()


def create_db_engine(url: str | None = None) -> AsyncEngine:
    """Create the async engine for ``url`` (defaults to settings.database_url)."""
    url = url or settings.database_url
    is_sqlite = url.startswith("sqlite")

    engine = create_async_engine(
        url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        echo=False,
    )
    if is_sqlite:
        event.listen(engine.sync_engine, "connect", _apply_sqlite_pragmas)

    logger.info("Database engine ready", url=url.split("?")[0])
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Records are mapped to domain objects after commit, so keep rows loaded
    return async_sessionmaker(bind=engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create the conversions schema if it is missing."""
    async with engine.begin() as conn:
        await conn.run_sync(TunebridgeDBBase.metadata.create_all)
    logger.debug("Conversion schema ready")


@asynccontextmanager
async def get_session(
    session_factory: async_sessionmaker[AsyncSession], rollback: bool = True
) -> AsyncGenerator[AsyncSession]:
    """One unit of work: commit on clean exit, roll back when the block raises.

    Args:
        session_factory: Factory bound to the target engine
        rollback: Roll back on error (pass False to leave it to the caller)
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            if rollback:
                await session.rollback()
            raise
