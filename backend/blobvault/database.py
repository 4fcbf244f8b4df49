"""Async engine and session factories for the blob store."""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Build an async engine; SQLite connections may cross threads."""

    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite+") else {}
    return create_async_engine(
        database_url,
        future=True,
        echo=echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)
