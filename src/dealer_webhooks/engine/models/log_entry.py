"""Webhook log entry model — one row per inbound delivery or replay."""

from __future__ import annotations

import enum
from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from dealer_webhooks.engine.models.base import Base

REPLAY_METHOD = "REPLAY"


class LogOutcome(enum.StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class WebhookLogEntry(Base):
    """An immutable record of a received request.

    The request half is written on receipt and never changed. The outcome
    half (``status_code`` through ``processed_at``) is written exactly once.
    """

    __tablename__ = "webhook_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    endpoint_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("webhook_endpoints.id"),
        nullable=False,
    )
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    headers: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    raw_body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    test_mode_at_receipt: Mapped[bool] = mapped_column(Boolean, nullable=False)
    replay_of_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("webhook_logs.id"),
        nullable=True,
        comment="Source entry when this row records a replay",
    )

    status_code: Mapped[int | None] = mapped_column(Integer, nullable=True)
    response: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_webhook_logs_endpoint_received", "endpoint_id", "received_at"),)

    @property
    def outcome(self) -> LogOutcome:
        if self.status_code is None:
            return LogOutcome.PENDING
        if self.error is not None or self.status_code >= 400:
            return LogOutcome.ERROR
        return LogOutcome.SUCCESS

    @property
    def is_replay(self) -> bool:
        return self.replay_of_id is not None

    def __repr__(self) -> str:
        return (
            f"<WebhookLogEntry id={self.id} endpoint={self.endpoint_id} "
            f"status={self.status_code}>"
        )
