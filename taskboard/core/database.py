"""Database connection and session management."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from .config import settings


def create_engine_for(url: str, echo: bool = False):
    """
    Create an async engine with the pool suited for the backend.

    SQLite требует StaticPool (иначе in-memory БД теряется между соединениями),
    для PostgreSQL пул отключён.
    """
    if "sqlite" in url:
        return create_async_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, echo=echo, poolclass=NullPool)


def create_session_factory(bind) -> async_sessionmaker[AsyncSession]:
    """Session factory shared by the store and the identity provider."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine_for(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
AsyncSessionLocal = create_session_factory(engine)


async def init_db(bind=None):
    """Initialize database (create all tables)."""
    from ..models import Base

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(bind=None):
    """Drop all tables (use with caution!)."""
    from ..models import Base

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
