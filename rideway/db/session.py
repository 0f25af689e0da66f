from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from rideway.core.config import settings

Base = declarative_base()

if "sqlite" in settings.DATABASE_URL:
    connect_args = {"check_same_thread": False}
else:
    connect_args = {}

engine = create_async_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=settings.DB_ECHO,
)
async_session = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_db():
    async with async_session() as session:
        yield session


@asynccontextmanager
async def unit_of_work(session_factory=async_session) -> AsyncIterator[AsyncSession]:
    """Open a session with one transaction around the block.

    The transaction commits when the block exits normally and rolls back when
    it raises, so every write made through the yielded session lands together
    or not at all.
    """
    async with session_factory() as session:
        async with session.begin():
            yield session
