"""Tests for ORM model helpers."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from dealer_webhooks.engine.models.base import new_id, utcnow
from dealer_webhooks.engine.models.endpoint import FieldMappingRow, WebhookEndpoint
from dealer_webhooks.engine.models.log_entry import LogOutcome, WebhookLogEntry
from dealer_webhooks.mapping.fields import (
    AccountStatus,
    FixedPlanMapping,
    FixedStatusMapping,
    PathMapping,
    SystemField,
)


class TestBaseHelpers:
    def test_new_id(self) -> None:
        first, second = new_id(), new_id()
        assert len(first) == 32
        assert first != second

    def test_utcnow_is_aware(self) -> None:
        assert utcnow().tzinfo is UTC


class TestFieldMappingRow:
    @pytest.mark.parametrize(
        "mapping",
        [
            PathMapping(SystemField.PHONE, "customer.phone", prefix="+55", suffix=None),
            FixedPlanMapping("planId123"),
            FixedStatusMapping(AccountStatus.VENCIDO),
        ],
    )
    def test_row_restores_mapping(self, mapping) -> None:
        row = FieldMappingRow.from_mapping(mapping, position=2)
        assert row.position == 2
        assert row.kind == mapping.kind.value
        assert row.to_mapping() == mapping

    def test_assign_switches_variant_columns(self) -> None:
        row = FieldMappingRow.from_mapping(
            PathMapping(SystemField.NAME, "customer.name", prefix="Mr ")
        )
        row.assign(FixedStatusMapping(AccountStatus.ACTIVE))
        assert row.source_path is None
        assert row.prefix is None
        assert row.fixed_value == "active"
        assert row.system_field == "status"


class TestWebhookEndpoint:
    def test_snapshot_and_has_mapping(self) -> None:
        endpoint = WebhookEndpoint(name="A", token="t")
        endpoint.mappings = [
            FieldMappingRow.from_mapping(PathMapping(SystemField.EMAIL, "email"), position=0),
            FieldMappingRow.from_mapping(FixedPlanMapping("p1"), position=1),
        ]
        assert endpoint.mapping_snapshot() == [
            PathMapping(SystemField.EMAIL, "email"),
            FixedPlanMapping("p1"),
        ]
        assert endpoint.has_mapping(SystemField.EMAIL)
        assert not endpoint.has_mapping(SystemField.NAME)


class TestLogOutcome:
    def _entry(self, **values) -> WebhookLogEntry:
        return WebhookLogEntry(
            endpoint_id="e1",
            received_at=datetime(2025, 1, 1, tzinfo=UTC),
            method="POST",
            url="/",
            raw_body="{}",
            test_mode_at_receipt=False,
            **values,
        )

    def test_pending(self) -> None:
        assert self._entry().outcome is LogOutcome.PENDING

    def test_success(self) -> None:
        assert self._entry(status_code=201).outcome is LogOutcome.SUCCESS

    def test_error_status(self) -> None:
        assert self._entry(status_code=422).outcome is LogOutcome.ERROR

    def test_error_message(self) -> None:
        assert self._entry(status_code=200, error="x").outcome is LogOutcome.ERROR

    def test_replay(self) -> None:
        assert self._entry(replay_of_id=3).is_replay
        assert not self._entry().is_replay
