from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from app.core.config import settings


def build_engine(url: str, **kwargs):
    """Create an async engine; pooling options only apply to server databases."""
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_size", 20)          # Number of permanent connections to maintain
        kwargs.setdefault("max_overflow", 10)       # Connections allowed beyond pool_size
        kwargs.setdefault("pool_pre_ping", True)    # Verify connections before using them
        kwargs.setdefault("pool_recycle", 3600)     # Recycle connections after 1 hour
    return create_async_engine(url, echo=False, **kwargs)


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
