"""
FlowStock Database Session Management

Async SQLAlchemy engine and session factory for the API process, plus a
loop-scoped variant for Celery tasks.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from core.config import get_settings

settings = get_settings()


def _engine_options(database_url: str, echo: bool = False) -> dict:
    options = {"echo": echo, "pool_pre_ping": True}
    if not database_url.startswith("sqlite"):
        options.update(pool_size=20, max_overflow=10)
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url, settings.database_echo))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def task_sessions(database_url: str) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """
    Session factory on a private engine, disposed on exit.

    Pooled connections belong to the event loop that opened them, and each
    Celery run gets a fresh loop from ``asyncio.run``.
    """
    task_engine = create_async_engine(database_url, **_engine_options(database_url))
    try:
        yield async_sessionmaker(task_engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await task_engine.dispose()


class Base(DeclarativeBase):
    """Declarative base for all SQLAlchemy models."""
    pass
