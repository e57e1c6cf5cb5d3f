from contextlib import asynccontextmanager
from typing import AsyncIterator
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from .config import DATABASE_URL, DB_POOL_SIZE, DB_ECHO

engine = create_async_engine(DATABASE_URL, pool_pre_ping=True, pool_size=DB_POOL_SIZE, echo=DB_ECHO)

AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Unit of work: commits when the block exits cleanly, rolls back on any error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncIterator[AsyncSession]:
    # one unit of work per request; promo redemption, ticket claims and purchase rows commit together
    async with session_scope() as session:
        yield session
