"""Endpoint service — endpoint lifecycle and field mapping edits.

Every mutation of one endpoint runs under that endpoint's ``asyncio.Lock``
so concurrent operator edits serialize. Ingestion never takes the lock; it
reads a consistent mapping snapshot together with the endpoint row.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from dealer_webhooks.engine.models.endpoint import FieldMappingRow, WebhookEndpoint
from dealer_webhooks.engine.repository.endpoints import EndpointRepository
from dealer_webhooks.errors.definitions import (
    ErrActivationRequiresEmail,
    ErrEndpointNameRequired,
    ErrEndpointNotFound,
)
from dealer_webhooks.errors.hook_errors import UnknownPlanOrStatusError
from dealer_webhooks.mapping.fields import FixedPlanMapping, SystemField, build_mapping

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from dealer_webhooks.engine.client import HookEngine
    from dealer_webhooks.mapping.fields import FieldMapping

logger = logging.getLogger(__name__)

RECEIVE_PATH = "/api/webhooks/receive"

_TOKEN_BYTES = 24


def generate_token() -> str:
    """Return a new unguessable URL-safe endpoint token."""
    return secrets.token_urlsafe(_TOKEN_BYTES)


@dataclass
class _EditLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class EndpointService:
    """Business logic for webhook endpoints and their mappings."""

    def __init__(self, engine: HookEngine) -> None:
        self._engine = engine
        self._repo = EndpointRepository(engine.datastore)
        self._locks: dict[str, _EditLock] = {}

    @contextlib.asynccontextmanager
    async def _editing(self, endpoint_id: str) -> AsyncIterator[None]:
        """Hold the mutation lock of one endpoint.

        A lock only exists while some edit holds or waits on it.
        """
        edit_lock = self._locks.get(endpoint_id)
        if edit_lock is None:
            edit_lock = self._locks[endpoint_id] = _EditLock()
        edit_lock.users += 1
        try:
            async with edit_lock.lock:
                yield
        finally:
            edit_lock.users -= 1
            if edit_lock.users == 0:
                del self._locks[endpoint_id]

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def create_endpoint(self, name: str) -> WebhookEndpoint:
        """Create an endpoint with no mappings, inactive and in test mode."""
        name = name.strip()
        if not name:
            raise ErrEndpointNameRequired
        endpoint = WebhookEndpoint(
            name=name,
            token=generate_token(),
            is_active=False,
            test_mode=True,
        )
        created = await self._repo.create(endpoint)
        logger.info("Created webhook endpoint %s (%s)", created.id, created.name)
        return created

    async def list_endpoints(self) -> list[WebhookEndpoint]:
        return await self._repo.list_all()

    async def get_endpoint(self, endpoint_id: str) -> WebhookEndpoint:
        """Get a live endpoint by id.

        Raises:
            HookError: If the endpoint does not exist or was deleted.
        """
        endpoint = await self._repo.get(endpoint_id)
        if endpoint is None:
            raise ErrEndpointNotFound
        return endpoint

    async def get_by_token(self, token: str) -> WebhookEndpoint | None:
        return await self._repo.get_by_token(token)

    async def rename(self, endpoint_id: str, name: str) -> WebhookEndpoint:
        name = name.strip()
        if not name:
            raise ErrEndpointNameRequired
        async with self._editing(endpoint_id):
            return self._found(await self._repo.update(endpoint_id, name=name))

    async def activate(self, endpoint_id: str) -> WebhookEndpoint:
        """Switch to production: active and out of test mode, together.

        Raises:
            HookError: If no email mapping is configured.
        """
        async with self._editing(endpoint_id):
            endpoint = await self.get_endpoint(endpoint_id)
            if not endpoint.has_mapping(SystemField.EMAIL):
                raise ErrActivationRequiresEmail
            updated = self._found(
                await self._repo.update(endpoint_id, is_active=True, test_mode=False)
            )
        logger.info("Activated webhook endpoint %s", endpoint_id)
        return updated

    async def deactivate(self, endpoint_id: str) -> WebhookEndpoint:
        """Return to test mode: inactive and in test mode, together."""
        async with self._editing(endpoint_id):
            updated = self._found(
                await self._repo.update(endpoint_id, is_active=False, test_mode=True)
            )
        logger.info("Deactivated webhook endpoint %s", endpoint_id)
        return updated

    async def delete_endpoint(self, endpoint_id: str) -> None:
        """Soft-delete an endpoint. Its log entries are kept."""
        async with self._editing(endpoint_id):
            deleted = await self._repo.soft_delete(endpoint_id, now=datetime.now(UTC))
        if not deleted:
            raise ErrEndpointNotFound
        logger.info("Deleted webhook endpoint %s", endpoint_id)

    async def duplicate(self, endpoint_id: str, *, name: str | None = None) -> WebhookEndpoint:
        """Create a new test-mode endpoint with a copy of another's mappings."""
        source = await self.get_endpoint(endpoint_id)
        clone = WebhookEndpoint(
            name=(name or "").strip() or f"{source.name} (copy)",
            token=generate_token(),
            is_active=False,
            test_mode=True,
        )
        clone.mappings = [
            FieldMappingRow.from_mapping(mapping, position=i)
            for i, mapping in enumerate(source.mapping_snapshot())
        ]
        created = await self._repo.create(clone)
        logger.info("Duplicated webhook endpoint %s as %s", endpoint_id, created.id)
        return created

    def receive_url(self, endpoint: WebhookEndpoint) -> str:
        """Absolute URL the provider posts to."""
        base = self._engine.config.webhooks.public_base_url.rstrip("/")
        return f"{base}{RECEIVE_PATH}/{endpoint.token}"

    # ------------------------------------------------------------------
    # Mappings
    # ------------------------------------------------------------------

    async def get_mappings(self, endpoint_id: str) -> tuple[FieldMapping, ...]:
        endpoint = await self.get_endpoint(endpoint_id)
        return tuple(endpoint.mapping_snapshot())

    async def set_mapping(
        self,
        endpoint_id: str,
        system_field: SystemField | str,
        value: str,
        *,
        prefix: str | None = None,
        suffix: str | None = None,
    ) -> WebhookEndpoint:
        """Create or replace the mapping of one system field.

        Raises:
            HookError: Invalid field, decoration on plan/status, empty path,
                unknown status, or a plan id that is not an active plan.
        """
        mapping = build_mapping(system_field, value, prefix=prefix, suffix=suffix)
        if isinstance(mapping, FixedPlanMapping):
            await self._check_plan(mapping.plan_id)
        async with self._editing(endpoint_id):
            return self._found(await self._repo.upsert_mapping(endpoint_id, mapping))

    async def remove_mapping(
        self,
        endpoint_id: str,
        system_field: SystemField | str,
    ) -> WebhookEndpoint:
        """Remove a mapping; removing an absent one is a no-op."""
        field_ = SystemField.parse(system_field)
        async with self._editing(endpoint_id):
            return self._found(await self._repo.delete_mapping(endpoint_id, field_))

    async def _check_plan(self, plan_id: str) -> None:
        plans = await self._engine.plan_catalog.list_active_plans()
        if not any(plan.id == plan_id for plan in plans):
            raise UnknownPlanOrStatusError(f"plan {plan_id!r} is not an active plan")

    @staticmethod
    def _found(endpoint: WebhookEndpoint | None) -> WebhookEndpoint:
        if endpoint is None:
            raise ErrEndpointNotFound
        return endpoint
