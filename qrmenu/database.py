"""
Database Connection Module
Builds the SQLAlchemy async engine and session factory.

The engine is created once in the application lifespan and handed to
the service container; request handlers receive sessions through the
``get_db`` dependency.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


# Base class for all our models
class Base(DeclarativeBase):
    pass


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine.

    SQLite (used by the test-suite and local demos) does not accept
    pool sizing arguments, so those are only passed to server databases.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)

    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,  # Connection pool size
        max_overflow=10,  # Extra connections when pool is full
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory - creates new database sessions."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Objects remain accessible after commit
    )


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    session_factory = request.app.state.services.session_factory
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(engine: AsyncEngine) -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Import models so they register on Base.metadata
    from qrmenu import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
