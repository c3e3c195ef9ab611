"""Contracts between the apply stage and its external collaborators.

The apply stage never talks to a database directly. It hands a normalized
:class:`AccountUpsert` to an :class:`AccountStore` (create-or-update matched
by email, one transaction) and reads plans through a :class:`PlanCatalog`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime  # noqa: TC003 - used in dataclass fields
from typing import Protocol, runtime_checkable

from dealer_webhooks.mapping.fields import AccountStatus


class CommitAction(enum.StrEnum):
    """What the upsert did."""

    CREATED = "created"
    UPDATED = "updated"
    ACCOUNT_CREATED = "account_created"
    RESTORED = "restored"


@dataclass(frozen=True)
class PlanInfo:
    """A catalog plan as seen by the mapping engine."""

    id: str
    name: str
    duration_months: int = 1


@dataclass(frozen=True)
class AccountUpsert:
    """Normalized values written to the user/account store."""

    email: str
    name: str
    phone: str | None = None
    cpf_cnpj: str | None = None
    plan_id: str | None = None
    account_name: str = ""
    offer: str | None = None
    quantity: int = 1
    status: AccountStatus = AccountStatus.ACTIVE
    due_date: datetime | None = None

    def as_fields(self) -> dict[str, str | int | None]:
        """Serialize for log entries and API responses."""
        return {
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "cpfCnpj": self.cpf_cnpj,
            "planId": self.plan_id,
            "accountName": self.account_name,
            "offer": self.offer,
            "quantity": self.quantity,
            "status": self.status.value,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
        }


@dataclass(frozen=True)
class CommitResult:
    """Outcome of one user/account upsert."""

    action: CommitAction
    user_id: str
    account_id: str
    fields: dict[str, str | int | None] = field(default_factory=dict)


@runtime_checkable
class AccountStore(Protocol):
    """Create-or-update a user and its account, matched by email."""

    async def upsert_user_account(self, fields: AccountUpsert) -> CommitResult: ...


@runtime_checkable
class PlanCatalog(Protocol):
    """Read-only plan lookup."""

    async def list_active_plans(self) -> list[PlanInfo]: ...
