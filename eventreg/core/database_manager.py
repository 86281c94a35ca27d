"""
Async engine and session handling for the event store
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, make_url, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool, StaticPool

from eventreg.core.settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class Base(DeclarativeBase):
    pass


def _engine_options(db_url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {
        "echo": settings.database.DB_ECHO,
        "pool_pre_ping": settings.database.DB_POOL_PRE_PING,
    }
    if make_url(db_url).get_backend_name() != "sqlite":
        options["pool_size"] = settings.database.DB_POOL_SIZE
        options["max_overflow"] = settings.database.DB_MAX_OVERFLOW
        options["pool_timeout"] = settings.database.DB_POOL_TIMEOUT
        options["pool_recycle"] = settings.database.DB_POOL_RECYCLE
        options["connect_args"] = {
            "command_timeout": settings.database.DB_COMMAND_TIMEOUT,
            "server_settings": {"application_name": settings.PROJECT_NAME.lower()},
        }
        return options

    # ``:memory:`` lives on one connection only. A file database gets a
    # fresh connection per session, and SQLite's write lock orders writers.
    in_memory = ":memory:" in db_url
    options["poolclass"] = StaticPool if in_memory else NullPool
    options["connect_args"] = {
        "check_same_thread": False,
        "timeout": settings.database.DB_SQLITE_BUSY_TIMEOUT,
    }
    return options


class DatabaseManager:
    """Owns the async engine and hands out sessions"""

    def __init__(self, database_url: Optional[str] = None) -> None:
        url = database_url or settings.database.database_url
        self.engine: AsyncEngine = create_async_engine(url, **_engine_options(url))
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        logger.info("Database engine ready for %s", self.safe_url)

    @property
    def safe_url(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session; roll back whatever is pending if the caller fails."""
        session = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        except Exception:
            # Domain errors end up here too; they are not database faults
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create missing tables (development and tests; production uses alembic)"""
        import eventreg.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except OperationalError as e:
            logger.error(f"Database unreachable: {e}")
            return {"status": "error", "message": "Database unreachable"}
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": "error", "message": "Database query failed"}

        return {
            "status": "healthy",
            "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
            "database_url": self.safe_url,
        }

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    # Needed for ON DELETE CASCADE on event_attendees
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


db_manager = DatabaseManager()
