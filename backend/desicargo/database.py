"""Database engine, session factory, and declarative base.

A single `Base` holds every table (branches, users, bookings, manifests, ...).
`get_db()` is the FastAPI session dependency: it commits when the request
handler returns and rolls back on any exception, so an operation that is
rejected part-way never leaves partial rows behind. Cache patterns queued
with `invalidate_on_commit` are dropped only after the commit succeeds.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from desicargo.config import settings
from desicargo.utils.cache import discard_invalidations, flush_invalidations

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=20,
    max_overflow=10,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """Yield a session; commit on success, roll back on failure."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            discard_invalidations(session)
            raise
        await flush_invalidations(session)
