"""Replay service — re-run stored deliveries against the current mapping."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from dealer_webhooks.engine.models.log_entry import REPLAY_METHOD, WebhookLogEntry
from dealer_webhooks.errors.definitions import ErrEmailMappingRequired
from dealer_webhooks.errors.hook_errors import HookError
from dealer_webhooks.mapping.apply import resolve_fields
from dealer_webhooks.mapping.fields import SystemField
from dealer_webhooks.payload.json_value import parse_json

if TYPE_CHECKING:
    from dealer_webhooks.engine.client import HookEngine
    from dealer_webhooks.engine.services.ingest_service import IngestResult
    from dealer_webhooks.payload.json_value import JsonValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewResult:
    """Dry-run result: what a commit would write, without writing."""

    resolved: dict[str, str]
    unresolved: list[str]
    fields: dict[str, Any] | None = None
    error: dict[str, str] | None = None
    log_id: int | None = None
    mapped: list[str] = field(default_factory=list)


class ReplayService:
    """Reprocessing and preview of stored deliveries."""

    def __init__(self, engine: HookEngine) -> None:
        self._engine = engine

    async def reprocess(
        self,
        endpoint_id: str,
        log_id: int | None = None,
        *,
        now: datetime | None = None,
    ) -> IngestResult:
        """Apply a stored body with the endpoint's current mapping.

        Runs regardless of the endpoint's mode. The outcome goes onto a new
        ``REPLAY`` entry that points at the source entry, which is never
        modified.

        Raises:
            HookError: Endpoint or entry not found, no stored payload, or no
                email mapping configured.
        """
        now = now or datetime.now(UTC)
        endpoint = await self._engine.endpoint_service.get_endpoint(endpoint_id)
        mappings = endpoint.mapping_snapshot()
        if not any(m.system_field is SystemField.EMAIL for m in mappings):
            raise ErrEmailMappingRequired

        source = await self._engine.log_service.source_entry(endpoint_id, log_id)
        entry = await self._engine.log_service.repository.append(
            WebhookLogEntry(
                endpoint_id=endpoint.id,
                received_at=now,
                method=REPLAY_METHOD,
                url=source.url,
                headers=dict(source.headers or {}),
                raw_body=source.raw_body,
                test_mode_at_receipt=False,
                replay_of_id=source.id,
            )
        )
        if self._engine.metrics is not None:
            self._engine.metrics.record_received("replay")
        logger.info("Replaying webhook log %s as log %s", source.id, entry.id)

        ingest = self._engine.ingest_service
        try:
            payload = parse_json(source.raw_body)
        except HookError as exc:
            return await ingest.fail(entry, exc, now)
        return await ingest.apply_and_record(entry, mappings, payload, now)

    async def preview(
        self,
        endpoint_id: str,
        *,
        log_id: int | None = None,
        sample: JsonValue | None = None,
        now: datetime | None = None,
    ) -> PreviewResult:
        """Resolve the current mapping against a stored body or *sample*.

        Nothing is written and no log entry is created.
        """
        now = now or datetime.now(UTC)
        endpoint = await self._engine.endpoint_service.get_endpoint(endpoint_id)
        mappings = endpoint.mapping_snapshot()

        source_id: int | None = None
        if sample is None:
            source = await self._engine.log_service.source_entry(endpoint_id, log_id)
            source_id = source.id
            sample = parse_json(source.raw_body)

        resolved = resolve_fields(sample, mappings)
        base = {
            "resolved": resolved.as_dict(),
            "unresolved": [f.value for f in resolved.unresolved],
            "log_id": source_id,
            "mapped": [m.system_field.value for m in mappings],
        }
        try:
            prepared = await self._engine.commit_stage.prepare(sample, mappings, now=now)
        except HookError as exc:
            return PreviewResult(**base, error=exc.to_dict())
        return PreviewResult(**base, fields=prepared.upsert.as_fields())
