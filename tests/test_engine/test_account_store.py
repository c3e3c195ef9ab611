"""Tests for the SQL-backed account store and plan catalog."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy import func, select

from dealer_webhooks.engine.client import HookEngine
from dealer_webhooks.engine.models.account import Account, User
from dealer_webhooks.engine.repository.accounts import SqlAccountStore, SqlPlanCatalog
from dealer_webhooks.mapping.contracts import AccountStore, AccountUpsert, CommitAction, PlanCatalog
from dealer_webhooks.mapping.fields import AccountStatus

DUE = datetime(2025, 6, 8, tzinfo=UTC)


def _fields(**overrides) -> AccountUpsert:
    values = {
        "email": "a@b.com",
        "name": "Ana",
        "phone": "+5511999990000",
        "plan_id": None,
        "account_name": "Ana's Account",
        "offer": "P3M",
        "quantity": 1,
        "due_date": DUE,
    }
    values.update(overrides)
    return AccountUpsert(**values)


@pytest.fixture
def store(engine: HookEngine) -> SqlAccountStore:
    return engine.account_store  # type: ignore[return-value]


class TestContracts:
    async def test_defaults_satisfy_protocols(self, engine: HookEngine) -> None:
        assert isinstance(engine.account_store, AccountStore)
        assert isinstance(engine.plan_catalog, PlanCatalog)
        assert isinstance(engine.account_store, SqlAccountStore)
        assert isinstance(engine.plan_catalog, SqlPlanCatalog)


class TestUpsert:
    async def test_create(self, store: SqlAccountStore) -> None:
        result = await store.upsert_user_account(_fields())

        assert result.action is CommitAction.CREATED
        user = await store.get_user("A@B.com")
        assert user is not None
        assert user.id == result.user_id
        assert user.phone == "+5511999990000"
        account = await store.get_account(user.id)
        assert account is not None
        assert account.id == result.account_id
        assert account.offer == "P3M"
        assert account.status == "active"
        assert result.fields["email"] == "a@b.com"

    async def test_update_same_email(self, store: SqlAccountStore) -> None:
        created = await store.upsert_user_account(_fields())
        updated = await store.upsert_user_account(
            _fields(name="Ana Maria", phone=None, status=AccountStatus.VENCIDO)
        )

        assert updated.action is CommitAction.UPDATED
        assert updated.user_id == created.user_id
        assert updated.account_id == created.account_id
        user = await store.get_user("a@b.com")
        assert user.name == "Ana Maria"
        assert user.phone == "+5511999990000"
        account = await store.get_account(user.id)
        assert account.status == "vencido"

    async def test_account_created_for_existing_user(
        self, engine: HookEngine, store: SqlAccountStore
    ) -> None:
        async with engine.datastore.session() as session:
            session.add(User(email="a@b.com", name="Ana"))
            await session.commit()

        result = await store.upsert_user_account(_fields())

        assert result.action is CommitAction.ACCOUNT_CREATED
        assert await store.get_account(result.user_id) is not None

    async def test_restore_deleted_user(self, engine: HookEngine, store: SqlAccountStore) -> None:
        created = await store.upsert_user_account(_fields())
        async with engine.datastore.session() as session:
            user = await session.get(User, created.user_id)
            user.deleted_at = datetime.now(UTC)
            await session.commit()

        result = await store.upsert_user_account(_fields())

        assert result.action is CommitAction.RESTORED
        assert result.user_id == created.user_id
        user = await store.get_user("a@b.com")
        assert user.deleted_at is None

    async def test_one_user_per_email(self, engine: HookEngine, store: SqlAccountStore) -> None:
        for _ in range(3):
            await store.upsert_user_account(_fields())
        async with engine.datastore.session() as session:
            users = await session.scalar(select(func.count()).select_from(User))
            accounts = await session.scalar(select(func.count()).select_from(Account))
        assert users == 1
        assert accounts == 1


class TestPlanCatalog:
    async def test_active_plans_only(self, engine: HookEngine) -> None:
        catalog: SqlPlanCatalog = engine.plan_catalog  # type: ignore[assignment]
        await catalog.add_plan("Pro", duration_months=3, plan_id="pro3")
        await catalog.add_plan("Pro", plan_id="pro1")
        basic = await catalog.add_plan("Basic")
        async with engine.datastore.session() as session:
            from dealer_webhooks.engine.models.account import Plan

            plan = await session.get(Plan, basic.id)
            plan.active = False
            await session.commit()

        plans = await catalog.list_active_plans()

        assert [(p.id, p.duration_months) for p in plans] == [("pro1", 1), ("pro3", 3)]
