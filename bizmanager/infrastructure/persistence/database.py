from sqlalchemy import event
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession, async_sessionmaker,
                                    create_async_engine)
from sqlalchemy.orm import DeclarativeBase

from bizmanager.infrastructure.config.settings import get_settings

settings = get_settings()


def _engine_kwargs(database_url: str) -> dict:
    if "postgresql" in database_url:
        return {
            "pool_pre_ping": True,
            "pool_size": 20,
            "max_overflow": 30,
            "pool_recycle": 3600,
            "connect_args": {
                "server_settings": {"jit": "off"},
                "command_timeout": 60,
            },
        }
    return {}


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine; SQLite connections get foreign keys switched on"""
    async_engine = create_async_engine(database_url, echo=echo, **_engine_kwargs(database_url))
    if async_engine.dialect.name == "sqlite":
        event.listen(async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return async_engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


# Create engine once at module level (not with lru_cache)
engine = build_engine(settings.database_url, echo=settings.database_echo)

AsyncSessionLocal = build_sessionmaker(engine)


class Base(DeclarativeBase):
    """Base class for all database models"""

    pass


async def get_db():
    """
    Database session dependency for read operations.
    Does not commit - read-only operations don't need commits.
    Write operations should use get_db_transactional().
    """
    async with AsyncSessionLocal() as session:
        yield session


async def get_db_transactional():
    """
    Database session dependency for write operations with automatic transaction management.
    - Begins transaction automatically
    - Commits on success
    - Rolls back on exception
    - Closes session automatically

    Use this for POST, PUT, PATCH, DELETE endpoints. Services only flush, so
    every multi-step write inside one request is a single transaction.
    """
    async with AsyncSessionLocal() as session:
        async with session.begin():
            yield session


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create all tables known to Base.metadata"""
    # Register every model on the metadata before create_all
    from bizmanager.infrastructure.persistence import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = [
    "AsyncSessionLocal",
    "Base",
    "build_engine",
    "build_sessionmaker",
    "create_tables",
    "engine",
    "get_db",
    "get_db_transactional",
]
