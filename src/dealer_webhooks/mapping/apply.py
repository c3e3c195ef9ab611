"""Apply/commit stage: turns one payload plus a mapping set into an upsert.

Resolution is pure (:func:`resolve_fields`); validation, plan lookup and the
due date happen in :meth:`CommitStage.prepare`; only :meth:`CommitStage.commit`
writes, through a single ``upsert_user_account`` call. Given the same payload,
mappings and clock, the prepared upsert is always identical, which is what
makes replay safe to repeat.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dealer_webhooks.errors.definitions import ErrMissingEmail
from dealer_webhooks.errors.hook_errors import (
    HookError,
    TransientPersistenceError,
    UnknownPlanOrStatusError,
)
from dealer_webhooks.mapping.contracts import AccountUpsert, CommitResult, PlanInfo
from dealer_webhooks.mapping.fields import (
    AccountStatus,
    FieldMapping,
    FixedPlanMapping,
    FixedStatusMapping,
    SystemField,
)
from dealer_webhooks.mapping.recurrence import due_date_for, parse_offer, parse_quantity
from dealer_webhooks.mapping.summary import build_summary
from dealer_webhooks.payload.resolver import resolve

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from dealer_webhooks.mapping.contracts import AccountStore, PlanCatalog
    from dealer_webhooks.payload.json_value import JsonValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedFields:
    """Values resolved from one payload, keyed by system field.

    Only fields that produced a non-blank value are present.
    """

    values: dict[SystemField, str] = field(default_factory=dict)
    unresolved: tuple[SystemField, ...] = ()

    def get(self, system_field: SystemField) -> str | None:
        """Return the trimmed value, or None when unresolved."""
        value = self.values.get(system_field)
        if value is None:
            return None
        return value.strip() or None

    def as_dict(self) -> dict[str, str]:
        return {f.value: v for f, v in self.values.items()}


def resolve_fields(payload: JsonValue, mappings: Sequence[FieldMapping]) -> ResolvedFields:
    """Resolve every mapping against *payload*.

    Path mappings read the payload and apply prefix/suffix to non-empty
    values; plan and status mappings contribute their fixed value.
    """
    values: dict[SystemField, str] = {}
    unresolved: list[SystemField] = []
    for mapping in mappings:
        if isinstance(mapping, FixedPlanMapping):
            values[mapping.system_field] = mapping.plan_id
        elif isinstance(mapping, FixedStatusMapping):
            values[mapping.system_field] = mapping.status.value
        else:
            raw = resolve(payload, mapping.source_path)
            if raw.strip():
                values[mapping.system_field] = mapping.decorate(raw)
            else:
                unresolved.append(mapping.system_field)
    return ResolvedFields(values, tuple(unresolved))


def normalize_email(email: str) -> str:
    """Trim and lower-case an email for matching and storage."""
    return email.strip().lower()


@dataclass(frozen=True)
class PreparedCommit:
    """Everything needed to write, computed without writing."""

    resolved: ResolvedFields
    upsert: AccountUpsert
    plan: PlanInfo | None = None


@dataclass(frozen=True)
class CommitOutcome:
    result: CommitResult
    prepared: PreparedCommit

    @property
    def summary(self) -> dict[str, Any]:
        return build_summary(self.result.action, self.prepared.upsert)


class CommitStage:
    """Resolves mappings and performs the atomic user/account upsert."""

    def __init__(self, store: AccountStore, catalog: PlanCatalog) -> None:
        self._store = store
        self._catalog = catalog

    async def prepare(
        self,
        payload: JsonValue,
        mappings: Sequence[FieldMapping],
        *,
        now: datetime,
    ) -> PreparedCommit:
        """Resolve and validate without touching the store.

        Raises:
            MissingRequiredMappingError: If email is unmapped or empty.
            UnknownPlanOrStatusError: If the fixed plan is no longer active.
        """
        resolved = resolve_fields(payload, mappings)

        email = resolved.get(SystemField.EMAIL)
        if email is None:
            raise ErrMissingEmail
        email = normalize_email(email)

        status_value = resolved.get(SystemField.STATUS)
        status = AccountStatus.parse(status_value) if status_value else AccountStatus.ACTIVE

        offer = resolved.get(SystemField.OFFER)
        quantity = parse_quantity(resolved.get(SystemField.QUANTITY))
        name = resolved.get(SystemField.NAME) or email.split("@", 1)[0]

        plan = await self._resolve_plan(resolved.get(SystemField.PLAN))
        plan_id = await self._resolve_plan_variant(plan, offer) if plan else None

        upsert = AccountUpsert(
            email=email,
            name=name,
            phone=resolved.get(SystemField.PHONE),
            cpf_cnpj=resolved.get(SystemField.CPF_CNPJ),
            plan_id=plan_id,
            account_name=plan.name if plan else f"{name}'s Account",
            offer=offer,
            quantity=quantity,
            status=status,
            due_date=due_date_for(offer, quantity, now),
        )
        return PreparedCommit(resolved=resolved, upsert=upsert, plan=plan)

    async def commit(
        self,
        payload: JsonValue,
        mappings: Sequence[FieldMapping],
        *,
        now: datetime,
    ) -> CommitOutcome:
        """Prepare, then write through ``upsert_user_account``.

        Raises:
            MissingRequiredMappingError: No write is attempted.
            UnknownPlanOrStatusError: No write is attempted.
            TransientPersistenceError: The store call failed.
        """
        prepared = await self.prepare(payload, mappings, now=now)
        try:
            result = await self._store.upsert_user_account(prepared.upsert)
        except HookError:
            raise
        except Exception as exc:
            logger.warning("User/account upsert failed for %s: %s", prepared.upsert.email, exc)
            raise TransientPersistenceError(f"user/account upsert failed: {exc}") from exc
        return CommitOutcome(result=result, prepared=prepared)

    # ------------------------------------------------------------------
    # Plan resolution
    # ------------------------------------------------------------------

    async def _resolve_plan(self, plan_id: str | None) -> PlanInfo | None:
        if plan_id is None:
            return None
        for plan in await self._catalog.list_active_plans():
            if plan.id == plan_id:
                return plan
        raise UnknownPlanOrStatusError(f"plan {plan_id!r} is not an active plan")

    async def _resolve_plan_variant(self, plan: PlanInfo, offer: str | None) -> str:
        """Pick the sibling plan whose duration matches the offer.

        Falls back to the configured plan when no offer is mapped or no
        variant of that duration exists.
        """
        recurrence = parse_offer(offer)
        if recurrence is None:
            return plan.id
        wanted = recurrence.duration_months
        if plan.duration_months == wanted:
            return plan.id
        for candidate in await self._catalog.list_active_plans():
            if candidate.name == plan.name and candidate.duration_months == wanted:
                return candidate.id
        return plan.id
