"""Engine data models (SQLAlchemy ORM).

Import :data:`ALL_MODELS` for table creation.
"""

from dealer_webhooks.engine.models.account import Account, Plan, User
from dealer_webhooks.engine.models.base import Base, TimestampMixin, new_id
from dealer_webhooks.engine.models.endpoint import FieldMappingRow, WebhookEndpoint
from dealer_webhooks.engine.models.log_entry import REPLAY_METHOD, LogOutcome, WebhookLogEntry

ALL_MODELS: list[type[Base]] = [
    WebhookEndpoint,
    FieldMappingRow,
    WebhookLogEntry,
    Plan,
    User,
    Account,
]

__all__ = [
    "ALL_MODELS",
    "REPLAY_METHOD",
    "Account",
    "Base",
    "FieldMappingRow",
    "LogOutcome",
    "Plan",
    "TimestampMixin",
    "User",
    "WebhookEndpoint",
    "WebhookLogEntry",
    "new_id",
]
