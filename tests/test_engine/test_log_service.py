"""Tests for LogService and the log repository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from dealer_webhooks.engine.client import HookEngine
from dealer_webhooks.engine.models.log_entry import LogOutcome, WebhookLogEntry
from dealer_webhooks.errors.definitions import (
    ErrInvalidLogStatus,
    ErrLogEntryNotFound,
    ErrOutcomeAlreadyRecorded,
)
from dealer_webhooks.errors.hook_errors import HookError
from dealer_webhooks.payload.json_value import stringify

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


async def _send(engine: HookEngine, token: str, body: str, minutes: int = 0):
    return await engine.ingest_service.receive(
        token,
        method="POST",
        url=f"http://testserver/api/webhooks/receive/{token}",
        headers={},
        body=body,
        now=NOW + timedelta(minutes=minutes),
    )


@pytest.fixture
async def endpoints(engine: HookEngine):
    svc = engine.endpoint_service
    hotmart = await svc.create_endpoint("Hotmart")
    kiwify = await svc.create_endpoint("Kiwify")
    await _send(engine, hotmart.token, '{"email": "ana@example.com"}', 0)
    await _send(engine, hotmart.token, "not json", 1)
    await _send(engine, kiwify.token, '{"email": "bob@example.com"}', 2)
    return hotmart, kiwify


class TestRecentLogs:
    async def test_newest_first(self, engine: HookEngine, endpoints) -> None:
        hotmart, _ = endpoints
        entries = await engine.log_service.recent_logs(hotmart.id)
        assert [e.raw_body for e in entries] == ["not json", '{"email": "ana@example.com"}']

    async def test_limit(self, engine: HookEngine, endpoints) -> None:
        hotmart, _ = endpoints
        entries = await engine.log_service.recent_logs(hotmart.id, limit=1)
        assert len(entries) == 1

    async def test_unknown_endpoint(self, engine: HookEngine) -> None:
        with pytest.raises(HookError):
            await engine.log_service.recent_logs("nope")

    @pytest.mark.parametrize(
        ("requested", "expected"),
        [(None, 100), (0, 100), (-5, 100), (20, 20), (10_000, 500)],
    )
    async def test_clamp_limit(self, engine: HookEngine, requested, expected: int) -> None:
        assert engine.log_service.clamp_limit(requested) == expected


class TestAllLogs:
    async def test_all_endpoints_with_names(self, engine: HookEngine, endpoints) -> None:
        rows, total = await engine.log_service.all_logs()
        assert total == 3
        assert [name for _, name in rows] == ["Kiwify", "Hotmart", "Hotmart"]

    async def test_filter_by_endpoint(self, engine: HookEngine, endpoints) -> None:
        _, kiwify = endpoints
        rows, total = await engine.log_service.all_logs(endpoint_id=kiwify.id)
        assert total == 1
        assert rows[0][0].endpoint_id == kiwify.id

    async def test_filter_by_status(self, engine: HookEngine, endpoints) -> None:
        rows, total = await engine.log_service.all_logs(status="error")
        assert total == 1
        assert rows[0][0].raw_body == "not json"

        _, success_total = await engine.log_service.all_logs(status="success")
        assert success_total == 2

        _, pending_total = await engine.log_service.all_logs(status="pending")
        assert pending_total == 0

    async def test_invalid_status(self, engine: HookEngine) -> None:
        with pytest.raises(HookError) as exc_info:
            await engine.log_service.all_logs(status="weird")
        assert exc_info.value is ErrInvalidLogStatus

    async def test_search_body_and_name(self, engine: HookEngine, endpoints) -> None:
        rows, total = await engine.log_service.all_logs(search="BOB@")
        assert total == 1
        assert "bob@example.com" in rows[0][0].raw_body

        _, by_name = await engine.log_service.all_logs(search="kiwi")
        assert by_name == 1

    async def test_paging(self, engine: HookEngine, endpoints) -> None:
        rows, total = await engine.log_service.all_logs(limit=2, offset=2)
        assert total == 3
        assert len(rows) == 1

    async def test_deleted_endpoint_hidden(self, engine: HookEngine, endpoints) -> None:
        hotmart, _ = endpoints
        await engine.endpoint_service.delete_endpoint(hotmart.id)
        rows, total = await engine.log_service.all_logs()
        assert total == 1
        assert rows[0][1] == "Kiwify"


class TestGetLog:
    async def test_get_and_ownership(self, engine: HookEngine, endpoints) -> None:
        hotmart, kiwify = endpoints
        newest = (await engine.log_service.recent_logs(hotmart.id))[0]

        found = await engine.log_service.get_log(hotmart.id, newest.id)
        assert found.id == newest.id

        with pytest.raises(HookError) as exc_info:
            await engine.log_service.get_log(kiwify.id, newest.id)
        assert exc_info.value is ErrLogEntryNotFound

    async def test_discover_fields(self, engine: HookEngine, endpoints) -> None:
        _, kiwify = endpoints
        fields = await engine.log_service.discover_fields(kiwify.id)
        assert [(f.path, stringify(f.value)) for f in fields] == [("email", "bob@example.com")]


class TestOutcomeWriteOnce:
    async def test_second_outcome_rejected(self, engine: HookEngine) -> None:
        endpoint = await engine.endpoint_service.create_endpoint("A")
        repo = engine.log_service.repository
        entry = await repo.append(
            WebhookLogEntry(
                endpoint_id=endpoint.id,
                received_at=NOW,
                method="POST",
                url="/",
                headers={},
                raw_body="{}",
                test_mode_at_receipt=True,
            )
        )
        assert entry.outcome is LogOutcome.PENDING

        await repo.record_outcome(entry.id, status_code=200, response={}, processed_at=NOW)
        with pytest.raises(HookError) as exc_info:
            await repo.record_outcome(entry.id, status_code=500, response=None, processed_at=NOW)
        assert exc_info.value is ErrOutcomeAlreadyRecorded

        stored = await repo.get(entry.id)
        assert stored.status_code == 200
        assert stored.outcome is LogOutcome.SUCCESS

    async def test_missing_entry(self, engine: HookEngine) -> None:
        with pytest.raises(HookError) as exc_info:
            await engine.log_service.repository.record_outcome(
                999, status_code=200, response=None, processed_at=NOW
            )
        assert exc_info.value is ErrLogEntryNotFound
