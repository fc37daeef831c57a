"""Database engine and session management.

Request handlers get a session from :func:`get_db`; the sweeper opens its own
sessions through :func:`get_session_factory` because it runs outside any
request.
"""

from collections.abc import AsyncGenerator

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from expertqa.config import settings

SessionFactory = async_sessionmaker[AsyncSession]

_ASYNC_DRIVERS = {
    "postgresql://": "postgresql+psycopg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def _get_async_url(url: str) -> str:
    """Map sync driver URLs onto their async counterparts."""
    for sync_prefix, async_prefix in _ASYNC_DRIVERS.items():
        if url.startswith(sync_prefix):
            return async_prefix + url[len(sync_prefix):]
    return url


engine = create_async_engine(
    _get_async_url(settings.database_url),
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_factory: SessionFactory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session; commit on success, roll back on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> SessionFactory:
    """Return the factory background jobs use to open their own sessions."""
    return async_session_factory


async def dispose_engine() -> None:
    """Close pooled connections on shutdown."""
    await engine.dispose()
    logger.info("Database connections closed")
