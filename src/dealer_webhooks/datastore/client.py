"""Datastore — the async engine, session factory and webhook schema.

Opening the datastore also creates any missing endpoint, log, user and plan
tables, so an empty SQLite file or Postgres database is usable right away.
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from dealer_webhooks.datastore.engines import create_engine
from dealer_webhooks.datastore.migrations import run_auto_migrate

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from dealer_webhooks.config.settings import DatabaseConfig

logger = logging.getLogger(__name__)

_ERR_NOT_OPEN = "Datastore is not open. Call open() first."


class Datastore:
    """Owns one ``AsyncEngine`` for the lifetime of the webhook engine.

    Usage::

        ds = Datastore(db_config)
        await ds.open()
        async with ds.transaction() as session:
            ...
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Return the underlying async engine.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._engine is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._engine

    async def open(self, *, create_schema: bool = True) -> None:
        """Connect and, unless *create_schema* is False, create missing tables.

        Raises:
            RuntimeError: If the datastore is already open.
        """
        if self._engine is not None:
            msg = "Datastore is already open"
            raise RuntimeError(msg)

        engine = create_engine(self._config)
        if create_schema:
            try:
                await run_auto_migrate(engine)
            except Exception:
                await engine.dispose()
                raise
        self._engine = engine
        self._sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        logger.info("Datastore open (%s)", self._config.engine.value)

    async def close(self) -> None:
        """Dispose the engine. Safe to call when already closed."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None

    def session(self) -> AsyncSession:
        """A new session; use it as an async context manager.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._sessions is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._sessions()

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """A session inside one transaction, committed on exit.

        Any exception rolls the whole transaction back and propagates.
        """
        async with self.session() as session, session.begin():
            yield session

    @property
    def is_open(self) -> bool:
        return self._engine is not None
