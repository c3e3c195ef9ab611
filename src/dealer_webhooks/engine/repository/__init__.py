"""Repositories — data access for endpoints, logs, users and plans."""

from dealer_webhooks.engine.repository.accounts import SqlAccountStore, SqlPlanCatalog
from dealer_webhooks.engine.repository.endpoints import EndpointRepository
from dealer_webhooks.engine.repository.logs import LogRepository

__all__ = [
    "EndpointRepository",
    "LogRepository",
    "SqlAccountStore",
    "SqlPlanCatalog",
]
