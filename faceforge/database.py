"""
Async database setup with SQLAlchemy and aiosqlite.

The scheduler loop and request handlers write to the same SQLite file
from one event loop but through separate connections, so every
connection gets WAL journaling and a busy timeout as it is opened.
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from faceforge.config import DATABASE_URL, ensure_directories
from faceforge.models import Base

# Milliseconds a writer waits on a locked database before failing
BUSY_TIMEOUT_MS = 5000


def _apply_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA journal_mode=WAL')
    cursor.execute('PRAGMA synchronous=NORMAL')
    cursor.execute(f'PRAGMA busy_timeout={BUSY_TIMEOUT_MS}')
    cursor.close()


def build_engine(url: str = DATABASE_URL, echo: bool = False) -> AsyncEngine:
    """Create an async engine whose SQLite connections share the job tables safely."""
    engine = create_async_engine(url, echo=echo)
    event.listen(engine.sync_engine, 'connect', _apply_pragmas)
    return engine


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Jobs are handed back to callers after commit, so attributes must stay loaded
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine()
async_session_factory = build_session_factory(engine)


async def create_tables(bind: AsyncEngine):
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db():
    """Create the data directories and any missing tables."""
    ensure_directories()
    await create_tables(engine)


async def close_db():
    """Close database connections."""
    await engine.dispose()


async def get_db():
    """
    Dependency that provides an async database session.

    Commits when the request handler returns and rolls back if it raises.

    Usage:
        @router.get('/models')
        async def list_models(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
