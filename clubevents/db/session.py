"""Database engine/session factory helpers."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from clubevents.db import models  # noqa: F401  registers tables on Base.metadata
from clubevents.db.base import Base


def create_engine_and_session_factory(database_url: str) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(
        database_url,
        pool_pre_ping=True,
    )
    session_factory = async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )
    return engine, session_factory


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables directly from the models (local runs and tests; production uses Alembic)."""

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
