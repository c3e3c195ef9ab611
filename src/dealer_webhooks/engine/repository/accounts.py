"""SQL-backed user/account store and plan catalog."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select

from dealer_webhooks.engine.models.account import Account, Plan, User
from dealer_webhooks.mapping.contracts import CommitAction, CommitResult, PlanInfo

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from dealer_webhooks.datastore.client import Datastore
    from dealer_webhooks.mapping.contracts import AccountUpsert

logger = logging.getLogger(__name__)


def _apply_user(user: User, fields: AccountUpsert) -> None:
    user.name = fields.name
    if fields.phone is not None:
        user.phone = fields.phone
    if fields.cpf_cnpj is not None:
        user.cpf_cnpj = fields.cpf_cnpj


def _apply_account(account: Account, fields: AccountUpsert) -> None:
    account.name = fields.account_name
    account.status = fields.status.value
    account.quantity = fields.quantity
    if fields.offer is not None:
        account.offer = fields.offer
    if fields.plan_id is not None:
        account.plan_id = fields.plan_id
    if fields.due_date is not None:
        account.due_date = fields.due_date


class SqlAccountStore:
    """Create-or-update a user and its account, matched by email.

    Everything happens in one transaction: either the user and account
    are both written, or neither is.
    """

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def upsert_user_account(self, fields: AccountUpsert) -> CommitResult:
        async with self._ds.transaction() as session:
            user = await self._find_user(session, fields.email)
            if user is None:
                user = User(email=fields.email)
                _apply_user(user, fields)
                session.add(user)
                await session.flush()
                account = Account(user_id=user.id)
                _apply_account(account, fields)
                session.add(account)
                action = CommitAction.CREATED
            else:
                restored = user.deleted_at is not None
                user.deleted_at = None
                _apply_user(user, fields)
                account = await self._find_account(session, user.id)
                if account is None:
                    account = Account(user_id=user.id)
                    session.add(account)
                    action = CommitAction.RESTORED if restored else CommitAction.ACCOUNT_CREATED
                else:
                    account.deleted_at = None
                    action = CommitAction.RESTORED if restored else CommitAction.UPDATED
                _apply_account(account, fields)
            await session.flush()
            result = CommitResult(
                action=action,
                user_id=user.id,
                account_id=account.id,
                fields=fields.as_fields(),
            )
        logger.info("Upserted user %s (%s)", fields.email, action.value)
        return result

    @staticmethod
    async def _find_user(session: AsyncSession, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return (await session.execute(stmt)).scalar_one_or_none()

    @staticmethod
    async def _find_account(session: AsyncSession, user_id: str) -> Account | None:
        stmt = (
            select(Account)
            .where(Account.user_id == user_id)
            .order_by(Account.deleted_at.is_not(None), Account.created_at)
            .limit(1)
        )
        return (await session.execute(stmt)).scalar_one_or_none()

    async def get_user(self, email: str) -> User | None:
        async with self._ds.session() as session:
            return await self._find_user(session, email.strip().lower())

    async def get_account(self, user_id: str) -> Account | None:
        async with self._ds.session() as session:
            return await self._find_account(session, user_id)


class SqlPlanCatalog:
    """Read active plans from the ``plans`` table."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def list_active_plans(self) -> list[PlanInfo]:
        async with self._ds.session() as session:
            stmt = (
                select(Plan)
                .where(Plan.active.is_(True), Plan.deleted_at.is_(None))
                .order_by(Plan.name, Plan.duration_months)
            )
            result = await session.execute(stmt)
            return [
                PlanInfo(id=plan.id, name=plan.name, duration_months=plan.duration_months)
                for plan in result.scalars().all()
            ]

    async def add_plan(
        self,
        name: str,
        *,
        duration_months: int = 1,
        plan_id: str | None = None,
    ) -> PlanInfo:
        """Register a plan in the catalog."""
        plan = Plan(name=name, duration_months=duration_months, active=True)
        if plan_id is not None:
            plan.id = plan_id
        async with self._ds.session() as session:
            session.add(plan)
            await session.commit()
        return PlanInfo(id=plan.id, name=plan.name, duration_months=plan.duration_months)
