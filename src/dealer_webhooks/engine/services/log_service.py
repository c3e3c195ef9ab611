"""Log service — reading the delivery history and discovering payload fields."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dealer_webhooks.engine.models.log_entry import LogOutcome
from dealer_webhooks.engine.repository.logs import LogRepository
from dealer_webhooks.errors.definitions import (
    ErrInvalidLogStatus,
    ErrLogEntryNotFound,
    ErrNoStoredPayload,
)
from dealer_webhooks.payload.flatten import flatten
from dealer_webhooks.payload.json_value import parse_json

if TYPE_CHECKING:
    from dealer_webhooks.engine.client import HookEngine
    from dealer_webhooks.engine.models.log_entry import WebhookLogEntry
    from dealer_webhooks.payload.flatten import FlatField


class LogService:
    """Read-side access to webhook log entries."""

    def __init__(self, engine: HookEngine) -> None:
        self._engine = engine
        self._repo = LogRepository(engine.datastore)

    @property
    def repository(self) -> LogRepository:
        return self._repo

    def clamp_limit(self, limit: int | None) -> int:
        """Apply the configured default and cap to a requested page size."""
        cfg = self._engine.config.webhooks
        if limit is None or limit < 1:
            return cfg.default_log_limit
        return min(limit, cfg.max_log_limit)

    async def recent_logs(
        self,
        endpoint_id: str,
        *,
        limit: int | None = None,
    ) -> list[WebhookLogEntry]:
        """Newest-first entries of one endpoint (endpoint must exist)."""
        await self._engine.endpoint_service.get_endpoint(endpoint_id)
        return await self._repo.recent_for_endpoint(endpoint_id, limit=self.clamp_limit(limit))

    async def all_logs(
        self,
        *,
        endpoint_id: str | None = None,
        status: str | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[tuple[WebhookLogEntry, str]], int]:
        """Global history, hiding entries of deleted endpoints."""
        outcome = None
        if status:
            try:
                outcome = LogOutcome(status)
            except ValueError:
                raise ErrInvalidLogStatus from None
        return await self._repo.search(
            endpoint_id=endpoint_id,
            outcome=outcome,
            text=search,
            limit=self.clamp_limit(limit),
            offset=max(offset, 0),
        )

    async def get_log(self, endpoint_id: str, log_id: int) -> WebhookLogEntry:
        """Get an entry that belongs to *endpoint_id*.

        Raises:
            HookError: If the entry is missing or owned by another endpoint.
        """
        entry = await self._repo.get(log_id)
        if entry is None or entry.endpoint_id != endpoint_id:
            raise ErrLogEntryNotFound
        return entry

    async def source_entry(self, endpoint_id: str, log_id: int | None) -> WebhookLogEntry:
        """The entry to replay or preview: an explicit one or the latest delivery."""
        if log_id is not None:
            return await self.get_log(endpoint_id, log_id)
        entry = await self._repo.latest_for_endpoint(endpoint_id)
        if entry is None:
            raise ErrNoStoredPayload
        return entry

    async def discover_fields(self, endpoint_id: str, log_id: int | None = None) -> list[FlatField]:
        """Flatten a stored body so an operator can pick source paths.

        Raises:
            MalformedPayloadError: If the stored body is not JSON.
        """
        entry = await self.source_entry(endpoint_id, log_id)
        return flatten(parse_json(entry.raw_body))
