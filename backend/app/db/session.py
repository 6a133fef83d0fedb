"""
Database engine, session factory and declarative base.

Lifecycle transitions lock rows (`SELECT ... FOR UPDATE`) and rely on
conditional UPDATE row counts, so sessions never autoflush: each
transition decides when its writes reach the database.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from backend.app.core.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_recycle=settings.db_pool_recycle_seconds,
    pool_pre_ping=True,
)

# Objects stay readable after commit; responses are built from them
MarketplaceSession = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """One session per request, so every transition is its own unit of work."""
    async with MarketplaceSession() as session:
        yield session
