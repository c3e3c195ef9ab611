"""Webhook endpoint and field mapping repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from dealer_webhooks.engine.models.endpoint import FieldMappingRow, WebhookEndpoint

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from dealer_webhooks.datastore.client import Datastore
    from dealer_webhooks.mapping.fields import FieldMapping, SystemField


async def _load(session: AsyncSession, endpoint_id: str) -> WebhookEndpoint | None:
    stmt = (
        select(WebhookEndpoint)
        .where(WebhookEndpoint.id == endpoint_id, WebhookEndpoint.deleted_at.is_(None))
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


class EndpointRepository:
    """Data access layer for endpoints and their mappings.

    Soft-deleted endpoints are invisible to every lookup here.
    """

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def create(self, endpoint: WebhookEndpoint) -> WebhookEndpoint:
        """Persist a new endpoint (with any mapping rows already attached)."""
        async with self._ds.session() as session:
            session.add(endpoint)
            await session.commit()
            return await _load(session, endpoint.id)  # type: ignore[return-value]

    async def get(self, endpoint_id: str) -> WebhookEndpoint | None:
        async with self._ds.session() as session:
            return await _load(session, endpoint_id)

    async def get_by_token(self, token: str) -> WebhookEndpoint | None:
        """Find a live endpoint by its receive token.

        The mappings are loaded in the same query, so the returned
        endpoint carries a consistent mapping snapshot.
        """
        async with self._ds.session() as session:
            stmt = select(WebhookEndpoint).where(
                WebhookEndpoint.token == token,
                WebhookEndpoint.deleted_at.is_(None),
            )
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def list_all(self) -> list[WebhookEndpoint]:
        async with self._ds.session() as session:
            stmt = (
                select(WebhookEndpoint)
                .where(WebhookEndpoint.deleted_at.is_(None))
                .order_by(WebhookEndpoint.created_at.desc(), WebhookEndpoint.name)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def update(self, endpoint_id: str, **values: Any) -> WebhookEndpoint | None:
        """Set plain columns (name, is_active, test_mode) on an endpoint."""
        async with self._ds.session() as session:
            endpoint = await _load(session, endpoint_id)
            if endpoint is None:
                return None
            for key, value in values.items():
                setattr(endpoint, key, value)
            await session.commit()
            return await _load(session, endpoint_id)

    async def soft_delete(self, endpoint_id: str, *, now: datetime) -> bool:
        """Mark an endpoint deleted and deactivate it. Returns True if found."""
        async with self._ds.session() as session:
            endpoint = await _load(session, endpoint_id)
            if endpoint is None:
                return False
            endpoint.deleted_at = now
            endpoint.is_active = False
            await session.commit()
            return True

    # ------------------------------------------------------------------
    # Mappings
    # ------------------------------------------------------------------

    async def upsert_mapping(
        self,
        endpoint_id: str,
        mapping: FieldMapping,
    ) -> WebhookEndpoint | None:
        """Create or replace the mapping for ``mapping.system_field``.

        An existing row keeps its position; a new one is appended.
        """
        async with self._ds.session() as session:
            endpoint = await _load(session, endpoint_id)
            if endpoint is None:
                return None
            field_ = mapping.system_field.value
            existing = next((row for row in endpoint.mappings if row.system_field == field_), None)
            if existing is not None:
                existing.assign(mapping)
            else:
                position = max((row.position for row in endpoint.mappings), default=-1) + 1
                endpoint.mappings.append(FieldMappingRow.from_mapping(mapping, position=position))
            await session.commit()
            return await _load(session, endpoint_id)

    async def delete_mapping(
        self,
        endpoint_id: str,
        system_field: SystemField,
    ) -> WebhookEndpoint | None:
        """Remove the mapping for *system_field* if present."""
        async with self._ds.session() as session:
            endpoint = await _load(session, endpoint_id)
            if endpoint is None:
                return None
            endpoint.mappings = [
                row for row in endpoint.mappings if row.system_field != system_field.value
            ]
            await session.commit()
            return await _load(session, endpoint_id)
