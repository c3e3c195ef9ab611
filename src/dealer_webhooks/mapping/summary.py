"""Operator-facing action summaries attached to processed deliveries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from dealer_webhooks.mapping.contracts import CommitAction
from dealer_webhooks.mapping.recurrence import parse_offer

if TYPE_CHECKING:
    from datetime import datetime

    from dealer_webhooks.mapping.contracts import AccountUpsert

PLACEHOLDER = "—"

ACTION_LABELS: dict[CommitAction, str] = {
    CommitAction.CREATED: "User created",
    CommitAction.UPDATED: "User updated (data, plan, due date and/or account status)",
    CommitAction.ACCOUNT_CREATED: "Account created for existing user",
    CommitAction.RESTORED: "User restored",
}


def format_date(value: datetime | None) -> str:
    """Format a date as ``DD/MM/YYYY``."""
    if value is None:
        return PLACEHOLDER
    return value.strftime("%d/%m/%Y")


def split_plan_display(plan_name: str | None) -> tuple[str, str]:
    """Split ``"Pro - Annual"`` into ``("Pro", "Annual")``."""
    if not plan_name or not plan_name.strip():
        return PLACEHOLDER, PLACEHOLDER
    text = plan_name.strip()
    base, sep, offer = text.partition(" - ")
    if sep and base.strip():
        return base.strip(), offer.strip()
    return text, PLACEHOLDER


def offer_label(offer: str | None) -> str:
    recurrence = parse_offer(offer)
    return recurrence.label if recurrence is not None else PLACEHOLDER


def build_summary(action: CommitAction, fields: AccountUpsert) -> dict[str, Any]:
    """Build the summary shown to operators for a committed delivery."""
    plan, offer = split_plan_display(fields.account_name)
    if offer == PLACEHOLDER:
        offer = offer_label(fields.offer)
    return {
        "actionLabel": ACTION_LABELS[action],
        "user": {
            "name": fields.name or PLACEHOLDER,
            "email": fields.email or PLACEHOLDER,
            "cpfCnpj": fields.cpf_cnpj,
        },
        "plan": plan,
        "offer": offer,
        "dueDate": format_date(fields.due_date),
        "status": fields.status.label,
    }
