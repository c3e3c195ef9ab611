"""Webhook log repository — append-only entries with a write-once outcome."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, or_, select, update

from dealer_webhooks.engine.models.endpoint import WebhookEndpoint
from dealer_webhooks.engine.models.log_entry import LogOutcome, WebhookLogEntry
from dealer_webhooks.errors.definitions import ErrLogEntryNotFound, ErrOutcomeAlreadyRecorded

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.sql.elements import ColumnElement

    from dealer_webhooks.datastore.client import Datastore


def _outcome_filter(outcome: LogOutcome) -> ColumnElement[bool]:
    if outcome is LogOutcome.PENDING:
        return WebhookLogEntry.status_code.is_(None)
    failed = or_(WebhookLogEntry.status_code >= 400, WebhookLogEntry.error.is_not(None))
    if outcome is LogOutcome.ERROR:
        return failed
    return WebhookLogEntry.status_code.is_not(None) & ~failed


class LogRepository:
    """Data access layer for webhook log entries.

    Entries are never updated except for the single outcome write, and
    never deleted.
    """

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def append(self, entry: WebhookLogEntry) -> WebhookLogEntry:
        """Durably store the request half of an entry and assign its id."""
        async with self._ds.session() as session:
            session.add(entry)
            await session.commit()
            await session.refresh(entry)
        return entry

    async def record_outcome(
        self,
        log_id: int,
        *,
        status_code: int,
        response: dict[str, Any] | None,
        processed_at: datetime,
        error: str | None = None,
        error_code: str | None = None,
    ) -> None:
        """Write the outcome of an entry exactly once.

        Raises:
            HookError: If the entry does not exist or already has an outcome.
        """
        async with self._ds.session() as session:
            stmt = (
                update(WebhookLogEntry)
                .where(WebhookLogEntry.id == log_id, WebhookLogEntry.status_code.is_(None))
                .values(
                    status_code=status_code,
                    response=response,
                    error=error,
                    error_code=error_code,
                    processed_at=processed_at,
                )
            )
            result = await session.execute(stmt)
            await session.commit()
            if result.rowcount == 0:  # type: ignore[attr-defined]
                exists = await session.get(WebhookLogEntry, log_id)
                raise ErrOutcomeAlreadyRecorded if exists is not None else ErrLogEntryNotFound

    async def get(self, log_id: int) -> WebhookLogEntry | None:
        async with self._ds.session() as session:
            return await session.get(WebhookLogEntry, log_id, populate_existing=True)

    async def latest_for_endpoint(self, endpoint_id: str) -> WebhookLogEntry | None:
        """Most recent non-replay delivery for an endpoint."""
        async with self._ds.session() as session:
            stmt = (
                select(WebhookLogEntry)
                .where(
                    WebhookLogEntry.endpoint_id == endpoint_id,
                    WebhookLogEntry.replay_of_id.is_(None),
                )
                .order_by(WebhookLogEntry.received_at.desc(), WebhookLogEntry.id.desc())
                .limit(1)
            )
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def recent_for_endpoint(self, endpoint_id: str, *, limit: int) -> list[WebhookLogEntry]:
        """Newest-first entries for one endpoint."""
        async with self._ds.session() as session:
            stmt = (
                select(WebhookLogEntry)
                .where(WebhookLogEntry.endpoint_id == endpoint_id)
                .order_by(WebhookLogEntry.received_at.desc(), WebhookLogEntry.id.desc())
                .limit(limit)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def search(
        self,
        *,
        endpoint_id: str | None = None,
        outcome: LogOutcome | None = None,
        text: str | None = None,
        limit: int,
        offset: int = 0,
    ) -> tuple[list[tuple[WebhookLogEntry, str]], int]:
        """Global history across live endpoints.

        Returns:
            ``(rows, total)`` where each row pairs an entry with its
            endpoint name, and *total* counts all matches before paging.
        """
        conditions: list[ColumnElement[bool]] = [WebhookEndpoint.deleted_at.is_(None)]
        if endpoint_id:
            conditions.append(WebhookLogEntry.endpoint_id == endpoint_id)
        if outcome is not None:
            conditions.append(_outcome_filter(outcome))
        if text and text.strip():
            pattern = f"%{text.strip()}%"
            conditions.append(
                or_(
                    WebhookLogEntry.raw_body.ilike(pattern),
                    WebhookLogEntry.url.ilike(pattern),
                    WebhookLogEntry.error.ilike(pattern),
                    WebhookEndpoint.name.ilike(pattern),
                )
            )

        async with self._ds.session() as session:
            base = (
                select(WebhookLogEntry, WebhookEndpoint.name)
                .join(WebhookEndpoint, WebhookEndpoint.id == WebhookLogEntry.endpoint_id)
                .where(*conditions)
            )
            total = await session.scalar(select(func.count()).select_from(base.subquery()))
            stmt = (
                base.order_by(WebhookLogEntry.received_at.desc(), WebhookLogEntry.id.desc())
                .offset(offset)
                .limit(limit)
            )
            result = await session.execute(stmt)
            rows = [(entry, name) for entry, name in result.all()]
        return rows, int(total or 0)
