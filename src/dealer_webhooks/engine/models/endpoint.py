"""Webhook endpoint and field mapping models."""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealer_webhooks.engine.models.base import Base, TimestampMixin, new_id
from dealer_webhooks.mapping.fields import (
    AccountStatus,
    FieldMapping,
    FixedPlanMapping,
    FixedStatusMapping,
    MappingKind,
    PathMapping,
    SystemField,
)


class WebhookEndpoint(Base, TimestampMixin):
    """A named inbound URL owned by a dealership.

    New endpoints start inactive and in test mode: deliveries are logged
    but never committed until an operator maps fields and activates.
    """

    __tablename__ = "webhook_endpoints"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
        comment="Opaque path segment identifying the endpoint",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    test_mode: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    mappings: Mapped[list[FieldMappingRow]] = relationship(
        "FieldMappingRow",
        back_populates="endpoint",
        cascade="all, delete-orphan",
        order_by="FieldMappingRow.position",
        lazy="selectin",
    )

    def mapping_snapshot(self) -> list[FieldMapping]:
        """Return the current mapping set as immutable values."""
        return [row.to_mapping() for row in self.mappings]

    def has_mapping(self, system_field: SystemField) -> bool:
        return any(row.system_field == system_field.value for row in self.mappings)

    def __repr__(self) -> str:
        return f"<WebhookEndpoint id={self.id} name={self.name!r}>"


class FieldMappingRow(Base, TimestampMixin):
    """Persisted form of one :data:`FieldMapping`.

    Exactly one of ``source_path`` / ``fixed_value`` is set depending on
    ``kind``; decorations only exist on path rows.
    """

    __tablename__ = "webhook_field_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    endpoint_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("webhook_endpoints.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    system_field: Mapped[str] = mapped_column(String(32), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    prefix: Mapped[str | None] = mapped_column(Text, nullable=True)
    suffix: Mapped[str | None] = mapped_column(Text, nullable=True)
    fixed_value: Mapped[str | None] = mapped_column(String(64), nullable=True)

    endpoint: Mapped[WebhookEndpoint] = relationship("WebhookEndpoint", back_populates="mappings")

    __table_args__ = (
        UniqueConstraint("endpoint_id", "system_field", name="uq_mapping_endpoint_field"),
        CheckConstraint(
            "(kind = 'path' AND source_path IS NOT NULL AND fixed_value IS NULL)"
            " OR (kind IN ('plan', 'status') AND fixed_value IS NOT NULL"
            " AND source_path IS NULL AND prefix IS NULL AND suffix IS NULL)",
            name="ck_mapping_variant",
        ),
    )

    def to_mapping(self) -> FieldMapping:
        kind = MappingKind(self.kind)
        if kind is MappingKind.PLAN:
            return FixedPlanMapping(self.fixed_value or "")
        if kind is MappingKind.STATUS:
            return FixedStatusMapping(AccountStatus.parse(self.fixed_value or ""))
        return PathMapping(
            SystemField(self.system_field),
            self.source_path or "",
            self.prefix,
            self.suffix,
        )

    def assign(self, mapping: FieldMapping) -> None:
        """Overwrite this row's columns from *mapping*."""
        self.system_field = mapping.system_field.value
        self.kind = mapping.kind.value
        if isinstance(mapping, PathMapping):
            self.source_path = mapping.source_path
            self.prefix = mapping.prefix
            self.suffix = mapping.suffix
            self.fixed_value = None
        else:
            self.source_path = None
            self.prefix = None
            self.suffix = None
            self.fixed_value = (
                mapping.plan_id if isinstance(mapping, FixedPlanMapping) else mapping.status.value
            )

    @classmethod
    def from_mapping(cls, mapping: FieldMapping, *, position: int = 0) -> FieldMappingRow:
        row = cls(position=position)
        row.assign(mapping)
        return row

    def __repr__(self) -> str:
        return f"<FieldMappingRow {self.system_field} kind={self.kind}>"
