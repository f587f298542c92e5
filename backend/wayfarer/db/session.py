"""
Async engine and session handling for PostgreSQL (asyncpg) and SQLite (aiosqlite)
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Dict, Any
from urllib.parse import urlparse

from sqlmodel import SQLModel, text
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from wayfarer.core.settings import Settings, get_settings

logger = logging.getLogger(__name__)

ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def to_async_url(database_url: str) -> str:
    """Swap a plain PostgreSQL/SQLite URL onto its async driver"""
    for prefix, async_prefix in ASYNC_DRIVERS.items():
        if database_url.startswith(prefix):
            return database_url.replace(prefix, async_prefix, 1)
    return database_url


class DatabaseManager:
    """Owns the async engine, hands out sessions and tracks connection counts"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.engine: Optional[AsyncEngine] = None
        self.async_session: Optional[async_sessionmaker] = None
        self._stats: Dict[str, Any] = {
            "total_connections": 0,
            "active_connections": 0,
            "failed_connections": 0,
            "health_status": "unknown",
        }

    def _prepare_database_url(self) -> str:
        if not self.settings.DB_URL:
            raise ValueError("DB_URL environment variable is required")

        parsed = urlparse(self.settings.DB_URL)
        if not parsed.scheme:
            raise ValueError("Invalid database URL format")

        # Host and database only; credentials stay out of the log
        logger.info(f"Using {parsed.scheme} database {parsed.hostname or ''}{parsed.path}")
        return to_async_url(self.settings.DB_URL)

    def _create_engine(self) -> AsyncEngine:
        url = self._prepare_database_url()
        options: Dict[str, Any] = {"echo": self.settings.DB_ECHO, "pool_pre_ping": True}
        if url.startswith("postgresql"):
            options.update(
                pool_size=self.settings.DB_POOL_SIZE,
                max_overflow=self.settings.DB_MAX_OVERFLOW,
                pool_timeout=self.settings.DB_POOL_TIMEOUT,
                pool_recycle=self.settings.DB_POOL_RECYCLE,
            )

        engine = create_async_engine(url, **options)

        @event.listens_for(engine.sync_engine, "connect")
        def on_connect(dbapi_connection, connection_record):
            self._stats["total_connections"] += 1
            self._stats["active_connections"] += 1

        @event.listens_for(engine.sync_engine, "close")
        def on_close(dbapi_connection, connection_record):
            self._stats["active_connections"] = max(0, self._stats["active_connections"] - 1)

        @event.listens_for(engine.sync_engine, "handle_error")
        def on_error(exception_context):
            self._stats["failed_connections"] += 1

        return engine

    async def initialize(self) -> None:
        self.engine = self._create_engine()
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        health = await self.health_check()
        logger.info(f"Database manager initialized, status {health['status']}")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if not self.async_session:
            raise RuntimeError("Database manager not initialized")

        async with self.async_session() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                logger.error(f"Database session error: {e}")
                await session.rollback()
                raise

    async def health_check(self) -> Dict[str, Any]:
        """SELECT 1 round trip with its latency"""
        started = time.perf_counter()
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            self._stats["health_status"] = "unhealthy"
            return {"status": "unhealthy", "error": str(e), "connections": self.get_connection_stats()}

        self._stats["health_status"] = "healthy"
        return {
            "status": "healthy",
            "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            "connections": self.get_connection_stats(),
        }

    async def init_db(self) -> None:
        """Create any missing tables"""
        if not self.engine:
            raise RuntimeError("Database engine not initialized")

        # Registers every table on SQLModel.metadata
        import wayfarer.db.base  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database tables ready")

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self.async_session = None
            logger.info("Database connections closed")

    def get_connection_stats(self) -> Dict[str, Any]:
        return dict(self._stats)


db_manager = DatabaseManager()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a database session"""
    async with db_manager.get_session() as session:
        yield session


async def init_db() -> None:
    if not db_manager.engine:
        await db_manager.initialize()
    await db_manager.init_db()


async def database_health_check() -> Dict[str, Any]:
    return await db_manager.health_check()
