"""Tests for EndpointService — endpoint lifecycle and mapping edits."""

from __future__ import annotations

import asyncio

import pytest

from dealer_webhooks.engine.client import HookEngine
from dealer_webhooks.engine.services.endpoint_service import RECEIVE_PATH
from dealer_webhooks.errors.definitions import (
    ErrActivationRequiresEmail,
    ErrDecorationNotAllowed,
    ErrEndpointNameRequired,
    ErrEndpointNotFound,
    ErrInvalidSystemField,
)
from dealer_webhooks.errors.hook_errors import HookError, UnknownPlanOrStatusError
from dealer_webhooks.mapping.fields import (
    AccountStatus,
    FixedPlanMapping,
    FixedStatusMapping,
    PathMapping,
    SystemField,
)


class TestCreateEndpoint:
    async def test_new_endpoint_is_inactive_test_mode(self, engine: HookEngine) -> None:
        endpoint = await engine.endpoint_service.create_endpoint("  Hotmart  ")
        assert endpoint.id
        assert endpoint.name == "Hotmart"
        assert endpoint.is_active is False
        assert endpoint.test_mode is True
        assert endpoint.mappings == []

    async def test_tokens_are_unique(self, engine: HookEngine) -> None:
        a = await engine.endpoint_service.create_endpoint("A")
        b = await engine.endpoint_service.create_endpoint("B")
        assert a.token != b.token
        assert len(a.token) >= 32

    async def test_blank_name_rejected(self, engine: HookEngine) -> None:
        with pytest.raises(type(ErrEndpointNameRequired)) as exc_info:
            await engine.endpoint_service.create_endpoint("   ")
        assert exc_info.value is ErrEndpointNameRequired

    async def test_receive_url(self, engine: HookEngine) -> None:
        endpoint = await engine.endpoint_service.create_endpoint("A")
        url = engine.endpoint_service.receive_url(endpoint)
        assert url == f"http://localhost:3001{RECEIVE_PATH}/{endpoint.token}"


class TestLookup:
    async def test_get_by_id_and_token(self, engine: HookEngine) -> None:
        created = await engine.endpoint_service.create_endpoint("A")
        by_id = await engine.endpoint_service.get_endpoint(created.id)
        by_token = await engine.endpoint_service.get_by_token(created.token)
        assert by_id.id == created.id
        assert by_token is not None
        assert by_token.id == created.id

    async def test_get_missing(self, engine: HookEngine) -> None:
        with pytest.raises(HookError) as exc_info:
            await engine.endpoint_service.get_endpoint("nope")
        assert exc_info.value is ErrEndpointNotFound

    async def test_unknown_token(self, engine: HookEngine) -> None:
        assert await engine.endpoint_service.get_by_token("nope") is None

    async def test_list(self, engine: HookEngine) -> None:
        await engine.endpoint_service.create_endpoint("A")
        await engine.endpoint_service.create_endpoint("B")
        names = {e.name for e in await engine.endpoint_service.list_endpoints()}
        assert names == {"A", "B"}

    async def test_rename(self, engine: HookEngine) -> None:
        created = await engine.endpoint_service.create_endpoint("A")
        renamed = await engine.endpoint_service.rename(created.id, "Kiwify")
        assert renamed.name == "Kiwify"
        assert renamed.token == created.token


class TestModeSwitching:
    async def test_activate_requires_email(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        await svc.set_mapping(endpoint.id, "name", "customer.name")

        with pytest.raises(HookError) as exc_info:
            await svc.activate(endpoint.id)

        assert exc_info.value is ErrActivationRequiresEmail
        unchanged = await svc.get_endpoint(endpoint.id)
        assert unchanged.is_active is False
        assert unchanged.test_mode is True

    async def test_activate_and_deactivate(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        await svc.set_mapping(endpoint.id, "email", "customer.email")

        active = await svc.activate(endpoint.id)
        assert active.is_active is True
        assert active.test_mode is False

        inactive = await svc.deactivate(endpoint.id)
        assert inactive.is_active is False
        assert inactive.test_mode is True

    async def test_activate_missing_endpoint(self, engine: HookEngine) -> None:
        with pytest.raises(HookError) as exc_info:
            await engine.endpoint_service.activate("nope")
        assert exc_info.value is ErrEndpointNotFound


class TestDeleteAndDuplicate:
    async def test_soft_delete_hides_endpoint(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        await svc.delete_endpoint(endpoint.id)

        assert await svc.get_by_token(endpoint.token) is None
        assert await svc.list_endpoints() == []
        with pytest.raises(HookError):
            await svc.get_endpoint(endpoint.id)

    async def test_delete_twice(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        await svc.delete_endpoint(endpoint.id)
        with pytest.raises(HookError) as exc_info:
            await svc.delete_endpoint(endpoint.id)
        assert exc_info.value is ErrEndpointNotFound

    async def test_duplicate_copies_mappings(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        await engine.plan_catalog.add_plan("Pro", plan_id="planId123")
        source = await svc.create_endpoint("Hotmart")
        await svc.set_mapping(source.id, "email", "customer.email")
        await svc.set_mapping(source.id, "phone", "customer.phone", prefix="+55")
        await svc.set_mapping(source.id, "plan", "planId123")
        await svc.activate(source.id)

        copy = await svc.duplicate(source.id)

        assert copy.id != source.id
        assert copy.token != source.token
        assert copy.name == "Hotmart (copy)"
        assert copy.is_active is False
        assert copy.test_mode is True
        assert copy.mapping_snapshot() == (await svc.get_endpoint(source.id)).mapping_snapshot()

    async def test_duplicate_with_name(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        source = await svc.create_endpoint("Hotmart")
        copy = await svc.duplicate(source.id, name="Hotmart staging")
        assert copy.name == "Hotmart staging"


class TestMappings:
    async def test_set_path_mapping(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        updated = await svc.set_mapping(endpoint.id, "email", "customer.email")
        assert updated.mapping_snapshot() == [PathMapping(SystemField.EMAIL, "customer.email")]

    async def test_replace_keeps_one_per_field_and_position(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        await svc.set_mapping(endpoint.id, "email", "customer.email")
        await svc.set_mapping(endpoint.id, "name", "customer.name")
        await svc.set_mapping(endpoint.id, "email", "buyer.email", suffix="")

        mappings = await svc.get_mappings(endpoint.id)

        assert mappings == (
            PathMapping(SystemField.EMAIL, "buyer.email"),
            PathMapping(SystemField.NAME, "customer.name"),
        )

    async def test_fixed_plan_must_be_active(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        with pytest.raises(UnknownPlanOrStatusError):
            await svc.set_mapping(endpoint.id, "plan", "ghost")
        assert await svc.get_mappings(endpoint.id) == ()

    async def test_fixed_plan_and_status(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        await engine.plan_catalog.add_plan("Pro", plan_id="planId123")
        endpoint = await svc.create_endpoint("A")
        await svc.set_mapping(endpoint.id, SystemField.PLAN, "planId123")
        await svc.set_mapping(endpoint.id, SystemField.STATUS, "vencido")

        assert await svc.get_mappings(endpoint.id) == (
            FixedPlanMapping("planId123"),
            FixedStatusMapping(AccountStatus.VENCIDO),
        )

    async def test_status_from_path_rejected(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        with pytest.raises(UnknownPlanOrStatusError):
            await svc.set_mapping(endpoint.id, "status", "customer.status")

    async def test_decoration_on_plan_rejected(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        with pytest.raises(HookError) as exc_info:
            await svc.set_mapping(endpoint.id, "plan", "planId123", prefix="x")
        assert exc_info.value is ErrDecorationNotAllowed

    async def test_unknown_field_rejected(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        with pytest.raises(HookError) as exc_info:
            await svc.set_mapping(endpoint.id, "birthday", "customer.birthday")
        assert exc_info.value is ErrInvalidSystemField

    async def test_remove_mapping(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        await svc.set_mapping(endpoint.id, "email", "customer.email")
        await svc.set_mapping(endpoint.id, "name", "customer.name")

        updated = await svc.remove_mapping(endpoint.id, "email")

        assert updated.mapping_snapshot() == [PathMapping(SystemField.NAME, "customer.name")]

    async def test_remove_absent_mapping_is_noop(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")
        updated = await svc.remove_mapping(endpoint.id, "phone")
        assert updated.mappings == []

    async def test_mapping_on_missing_endpoint(self, engine: HookEngine) -> None:
        with pytest.raises(HookError) as exc_info:
            await engine.endpoint_service.set_mapping("nope", "email", "customer.email")
        assert exc_info.value is ErrEndpointNotFound

    async def test_concurrent_edits_serialize(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")

        await asyncio.gather(
            svc.set_mapping(endpoint.id, "email", "customer.email"),
            svc.set_mapping(endpoint.id, "name", "customer.name"),
            svc.set_mapping(endpoint.id, "phone", "customer.phone"),
        )

        fields = {m.system_field for m in await svc.get_mappings(endpoint.id)}
        assert fields == {SystemField.EMAIL, SystemField.NAME, SystemField.PHONE}

    async def test_locks_released_after_edits(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")

        await asyncio.gather(
            svc.rename(endpoint.id, "B"),
            svc.set_mapping(endpoint.id, "email", "customer.email"),
        )

        assert svc._locks == {}

    async def test_unknown_endpoint_leaves_no_lock(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        with pytest.raises(HookError):
            await svc.rename("missing", "X")
        with pytest.raises(HookError):
            await svc.remove_mapping("missing", "email")
        with pytest.raises(HookError):
            await svc.delete_endpoint("missing")
        assert "missing" not in svc._locks

    async def test_edit_queued_behind_delete_fails(self, engine: HookEngine) -> None:
        svc = engine.endpoint_service
        endpoint = await svc.create_endpoint("A")

        results = await asyncio.gather(
            svc.delete_endpoint(endpoint.id),
            svc.set_mapping(endpoint.id, "email", "customer.email"),
            return_exceptions=True,
        )

        assert results[0] is None
        assert results[1] is ErrEndpointNotFound
        assert svc._locks == {}
