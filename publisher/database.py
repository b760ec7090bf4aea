from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from publisher.config import settings
from publisher.middleware import install_query_counter

_AFTER_COMMIT = "after_commit"


class Base(DeclarativeBase):
    pass


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for *url* with the SQL query counter attached."""
    engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
    install_query_counter(engine)
    return engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create any missing table.  Existing tables are left as they are."""
    import publisher.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def after_commit(session: AsyncSession, callback: Callable[[], Awaitable[None]]) -> None:
    """Queue *callback* to be awaited once *session* has committed."""
    session.info.setdefault(_AFTER_COMMIT, []).append(callback)


async def commit(session: AsyncSession) -> None:
    """Commit *session*, then run its queued ``after_commit`` callbacks in order."""
    await session.commit()
    for callback in session.info.pop(_AFTER_COMMIT, []):
        await callback()


async def rollback(session: AsyncSession) -> None:
    """Roll *session* back and drop its queued callbacks."""
    session.info.pop(_AFTER_COMMIT, None)
    await session.rollback()


async def get_db():
    """
    Yield one session per request.

    This is the transaction boundary: repositories only flush, so an
    exception anywhere in the request rolls back every write it made
    (an article and its category links included).  Cache invalidation
    queued with ``after_commit`` runs only once the commit succeeded.
    """
    async with async_session() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            await rollback(session)
            raise
