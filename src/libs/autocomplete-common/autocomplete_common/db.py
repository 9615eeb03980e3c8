# src/libs/autocomplete-common/autocomplete_common/db.py
import os
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from .config import POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_HOST, POSTGRES_PORT, POSTGRES_DB


def get_async_database_url():
    """
    Determines the correct async database URL, with an asyncpg driver scheme.
    - For local development, it uses HOST_DATABASE_URL from the .env file.
    - For Docker, it uses DATABASE_URL or constructs the URL from individual POSTGRES_* vars.
    """
    url = (
        os.getenv("DATABASE_URL")
        or os.getenv("HOST_DATABASE_URL")
        or f"postgresql+asyncpg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}"
    )
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://")
    return url

async_engine = create_async_engine(
    get_async_database_url(),
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

async def get_async_db_session() -> AsyncSession:
    """
    An async dependency that provides an SQLAlchemy AsyncSession.
    It ensures the session is always closed, even if errors occur.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
