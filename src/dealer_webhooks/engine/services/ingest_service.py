"""Ingest service — the receive pipeline for inbound webhook deliveries.

Every delivery to a known token is logged *before* anything else happens,
so the raw body survives parse and processing failures and can be replayed.
The outcome of processing is then written once onto the same entry.
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from dealer_webhooks.engine.models.log_entry import WebhookLogEntry
from dealer_webhooks.errors.definitions import (
    ErrEndpointInactive,
    ErrEndpointNotFound,
    ErrEndpointNotInTestMode,
    ErrProcessingFailed,
)
from dealer_webhooks.errors.hook_errors import HookError
from dealer_webhooks.mapping.contracts import CommitAction
from dealer_webhooks.payload.json_value import parse_json

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from dealer_webhooks.engine.client import HookEngine
    from dealer_webhooks.engine.models.endpoint import WebhookEndpoint
    from dealer_webhooks.mapping.fields import FieldMapping
    from dealer_webhooks.payload.json_value import JsonValue

logger = logging.getLogger(__name__)

TEST_MODE_MESSAGE = (
    "Webhook received in test mode. Configure the mappings and activate the endpoint."
)


@dataclass(frozen=True)
class IngestResult:
    """HTTP status and JSON envelope answered for one delivery."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)
    log_id: int | None = None


def sanitize_headers(headers: Mapping[str, str], redacted: Sequence[str]) -> dict[str, str]:
    """Lower-case header names and drop credentials."""
    blocked = {name.lower() for name in redacted}
    return {name.lower(): value for name, value in headers.items() if name.lower() not in blocked}


def decode_body(body: bytes | str) -> str:
    if isinstance(body, str):
        return body
    return body.decode("utf-8", errors="replace")


def error_envelope(exc: HookError, log_id: int | None) -> dict[str, Any]:
    return {"success": False, "error": {**exc.to_dict(), "logId": log_id}}


class IngestService:
    """Receives deliveries, logs them, and applies them in production mode."""

    def __init__(self, engine: HookEngine) -> None:
        self._engine = engine

    async def receive(
        self,
        token: str,
        *,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | str,
        now: datetime | None = None,
    ) -> IngestResult:
        """Handle one inbound request.

        Raises:
            HookError: Only when *token* matches no live endpoint; nothing is
                logged in that case. Every other failure is answered.
        """
        now = now or datetime.now(UTC)
        endpoint = await self._engine.endpoint_service.get_by_token(token)
        if endpoint is None:
            raise ErrEndpointNotFound
        return await self._ingest(
            endpoint, method=method, url=url, headers=headers, body=body, now=now
        )

    async def capture_sample(
        self,
        endpoint_id: str,
        *,
        url: str,
        headers: Mapping[str, str],
        body: bytes | str,
        now: datetime | None = None,
    ) -> IngestResult:
        """Log an operator-sent sample as if the provider had delivered it.

        The entry is answered like any test-mode receipt and can be previewed
        or reprocessed afterwards.

        Raises:
            HookError: Unknown endpoint, or the endpoint is not in test mode.
        """
        now = now or datetime.now(UTC)
        endpoint = await self._engine.endpoint_service.get_endpoint(endpoint_id)
        if not endpoint.test_mode:
            raise ErrEndpointNotInTestMode
        return await self._ingest(
            endpoint, method="POST", url=url, headers=headers, body=body, now=now
        )

    async def _ingest(
        self,
        endpoint: WebhookEndpoint,
        *,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | str,
        now: datetime,
    ) -> IngestResult:
        entry = await self._engine.log_service.repository.append(
            WebhookLogEntry(
                endpoint_id=endpoint.id,
                received_at=now,
                method=method.upper(),
                url=url,
                headers=sanitize_headers(headers, self._engine.config.webhooks.redacted_headers),
                raw_body=decode_body(body),
                test_mode_at_receipt=endpoint.test_mode,
            )
        )
        if endpoint.test_mode:
            mode = "test"
        else:
            mode = "production" if endpoint.is_active else "inactive"
        self._observe_received(mode)
        logger.info("Received webhook for endpoint %s (log %s, %s)", endpoint.id, entry.id, mode)

        try:
            return await self._process(endpoint, entry, body, now)
        except Exception:
            logger.exception("Unexpected failure processing webhook log %s", entry.id)
            return await self.fail(entry, ErrProcessingFailed, now)

    async def _process(
        self,
        endpoint: WebhookEndpoint,
        entry: WebhookLogEntry,
        body: bytes | str,
        now: datetime,
    ) -> IngestResult:
        try:
            payload = parse_json(body)
        except HookError as exc:
            logger.warning("Malformed webhook body for endpoint %s (log %s)", endpoint.id, entry.id)
            return await self.fail(entry, exc, now)

        if endpoint.test_mode:
            response = {
                "success": True,
                "message": TEST_MODE_MESSAGE,
                "data": {"logId": entry.id, "testMode": True},
            }
            await self._record(entry, status_code=200, response=response, now=now)
            return IngestResult(200, response, entry.id)

        if not endpoint.is_active:
            return await self.fail(entry, ErrEndpointInactive, now)

        return await self.apply_and_record(entry, endpoint.mapping_snapshot(), payload, now)

    async def apply_and_record(
        self,
        entry: WebhookLogEntry,
        mappings: Sequence[FieldMapping],
        payload: JsonValue,
        now: datetime,
    ) -> IngestResult:
        """Run the apply/commit stage and write its outcome onto *entry*."""
        try:
            with self._track_apply():
                outcome = await self._engine.commit_stage.commit(payload, mappings, now=now)
        except HookError as exc:
            logger.warning("Webhook log %s failed: %s (%s)", entry.id, exc.message, exc.code)
            return await self.fail(entry, exc, now)
        except Exception:
            logger.exception("Unexpected failure processing webhook log %s", entry.id)
            return await self.fail(entry, ErrProcessingFailed, now)

        result = outcome.result
        summary = outcome.summary
        response = {
            "success": True,
            "message": summary["actionLabel"],
            "data": {
                "action": result.action.value,
                "userId": result.user_id,
                "accountId": result.account_id,
                "logId": entry.id,
                "summary": summary,
                "fields": result.fields,
            },
        }
        status_code = 201 if result.action is CommitAction.CREATED else 200
        await self._record(entry, status_code=status_code, response=response, now=now)
        if self._engine.metrics is not None:
            self._engine.metrics.record_success(result.action.value)
        return IngestResult(status_code, response, entry.id)

    async def fail(self, entry: WebhookLogEntry, exc: HookError, now: datetime) -> IngestResult:
        """Record *exc* as the outcome of *entry* and build the error answer."""
        response = error_envelope(exc, entry.id)
        await self._record(
            entry,
            status_code=exc.status_code,
            response=response,
            now=now,
            error=exc.message,
            error_code=exc.code,
        )
        if self._engine.metrics is not None:
            self._engine.metrics.record_failure(exc.code)
        return IngestResult(exc.status_code, response, entry.id)

    async def _record(
        self,
        entry: WebhookLogEntry,
        *,
        status_code: int,
        response: dict[str, Any],
        now: datetime,
        error: str | None = None,
        error_code: str | None = None,
    ) -> None:
        try:
            await self._engine.log_service.repository.record_outcome(
                entry.id,
                status_code=status_code,
                response=response,
                processed_at=now,
                error=error,
                error_code=error_code,
            )
        except Exception:
            logger.exception("Failed to record outcome for webhook log %s", entry.id)

    def _observe_received(self, mode: str) -> None:
        if self._engine.metrics is not None:
            self._engine.metrics.record_received(mode)

    @contextlib.contextmanager
    def _track_apply(self) -> Iterator[None]:
        if self._engine.metrics is None:
            yield
            return
        with self._engine.metrics.track_apply():
            yield
