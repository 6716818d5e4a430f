"""Async engine and per-operation transactions for the metric catalog."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from metric_catalog.common.config import CatalogSettings, get_settings
from metric_catalog.common.models import Base

# Import all model modules so Base.metadata is complete for create_all().
import metric_catalog.metrics.models  # noqa: F401
import metric_catalog.usage.models  # noqa: F401
import metric_catalog.audit.models  # noqa: F401


def _enforce_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES unless enabled per connection; metric_usage
    # must not outlive its metric_definition row.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Owns the catalog's async engine.

    Every mutating catalog operation runs inside one ``get_session()`` block,
    which is one transaction: definition rows, usage rows, the usage_count
    cache and audit events commit together or not at all.
    """

    def __init__(self, settings: CatalogSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        self.engine = create_async_engine(self._settings.db_url, echo=False)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enforce_sqlite_foreign_keys)
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager not initialized, call init() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create metric_definition, metric_usage and metric_audit_events."""
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized, call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
