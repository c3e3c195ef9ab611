"""API request/response schemas (Pydantic models)."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from dealer_webhooks.mapping.fields import (
    AccountStatus,
    FieldMapping,
    FixedPlanMapping,
    FixedStatusMapping,
    SystemField,
)

if TYPE_CHECKING:
    from dealer_webhooks.engine.models.log_entry import WebhookLogEntry

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


class EndpointCreateRequest(BaseModel):
    """Create a webhook endpoint."""

    name: str = Field(..., min_length=1, max_length=255)


class EndpointUpdateRequest(BaseModel):
    """Rename a webhook endpoint."""

    name: str = Field(..., min_length=1, max_length=255)


class EndpointDuplicateRequest(BaseModel):
    """Optional name for the copy."""

    name: str | None = None


class MappingUpsertRequest(BaseModel):
    """Set the mapping of one system field.

    ``value`` is a source path, or the plan id / status value for the
    ``plan`` and ``status`` fields.
    """

    value: str
    prefix: str | None = None
    suffix: str | None = None


class MappingResponse(BaseModel):
    """One configured field mapping."""

    system_field: str = Field(alias="systemField")
    kind: str
    label: str
    category: str
    source_path: str | None = Field(None, alias="sourcePath")
    prefix: str | None = None
    suffix: str | None = None
    value: str | None = None

    model_config = {"populate_by_name": True}

    @classmethod
    def from_mapping(cls, mapping: FieldMapping) -> MappingResponse:
        field_ = mapping.system_field
        base = {
            "system_field": field_.value,
            "kind": mapping.kind.value,
            "label": field_.label,
            "category": field_.category.value,
        }
        if isinstance(mapping, FixedPlanMapping):
            return cls(**base, value=mapping.plan_id)
        if isinstance(mapping, FixedStatusMapping):
            return cls(**base, value=mapping.status.value)
        return cls(
            **base,
            source_path=mapping.source_path,
            prefix=mapping.prefix,
            suffix=mapping.suffix,
        )


class EndpointResponse(BaseModel):
    """Webhook endpoint with its mapping set and receive URL."""

    id: str
    name: str
    token: str
    receive_url: str = Field(alias="receiveUrl")
    is_active: bool = Field(alias="isActive")
    test_mode: bool = Field(alias="testMode")
    mappings: list[MappingResponse] = Field(default_factory=list)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = {"populate_by_name": True}


# ---------------------------------------------------------------------------
# Logs
# ---------------------------------------------------------------------------


class LogEntryResponse(BaseModel):
    """Webhook log entry."""

    id: int
    endpoint_id: str = Field(alias="endpointId")
    endpoint_name: str | None = Field(None, alias="endpointName")
    received_at: datetime = Field(alias="receivedAt")
    method: str
    url: str
    headers: dict[str, Any] = Field(default_factory=dict)
    raw_body: str = Field(alias="rawBody")
    test_mode_at_receipt: bool = Field(alias="testMode")
    replay_of_id: int | None = Field(None, alias="replayOfId")
    status_code: int | None = Field(None, alias="statusCode")
    response: dict[str, Any] | None = None
    error: str | None = None
    error_code: str | None = Field(None, alias="errorCode")
    processed_at: datetime | None = Field(None, alias="processedAt")
    outcome: str

    model_config = {"populate_by_name": True}

    @classmethod
    def from_entry(
        cls,
        entry: WebhookLogEntry,
        endpoint_name: str | None = None,
    ) -> LogEntryResponse:
        return cls(
            id=entry.id,
            endpoint_id=entry.endpoint_id,
            endpoint_name=endpoint_name,
            received_at=entry.received_at,
            method=entry.method,
            url=entry.url,
            headers=entry.headers or {},
            raw_body=entry.raw_body,
            test_mode_at_receipt=entry.test_mode_at_receipt,
            replay_of_id=entry.replay_of_id,
            status_code=entry.status_code,
            response=entry.response,
            error=entry.error,
            error_code=entry.error_code,
            processed_at=entry.processed_at,
            outcome=entry.outcome.value,
        )


class LogPageResponse(BaseModel):
    """A page of the global log history."""

    items: list[LogEntryResponse]
    total: int
    limit: int
    offset: int


class FlatFieldResponse(BaseModel):
    """One discovered payload leaf."""

    path: str
    value: Any = None
    preview: str


class ReprocessRequest(BaseModel):
    """Optionally pick the log entry to reprocess."""

    log_id: int | None = Field(None, alias="logId")

    model_config = {"populate_by_name": True}


class PreviewRequest(BaseModel):
    """Dry-run source: a stored log entry, or an inline sample payload."""

    log_id: int | None = Field(None, alias="logId")
    sample: Any = None

    model_config = {"populate_by_name": True}


class PreviewResponse(BaseModel):
    """What the current mapping would commit."""

    log_id: int | None = Field(None, alias="logId")
    mapped: list[str]
    resolved: dict[str, str]
    unresolved: list[str]
    fields: dict[str, Any] | None = None
    error: dict[str, str] | None = None

    model_config = {"populate_by_name": True, "from_attributes": True}


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class SystemFieldResponse(BaseModel):
    key: str
    label: str
    category: str
    description: str
    fixed: bool

    @classmethod
    def from_field(cls, field_: SystemField) -> SystemFieldResponse:
        return cls(
            key=field_.value,
            label=field_.label,
            category=field_.category.value,
            description=field_.description,
            fixed=field_.is_fixed,
        )


class StatusOptionResponse(BaseModel):
    value: str
    label: str

    @classmethod
    def from_status(cls, status: AccountStatus) -> StatusOptionResponse:
        return cls(value=status.value, label=status.label)


class SystemFieldsResponse(BaseModel):
    fields: list[SystemFieldResponse]
    status_options: list[StatusOptionResponse] = Field(alias="statusOptions")

    model_config = {"populate_by_name": True}


class PlanResponse(BaseModel):
    id: str
    name: str
    duration_months: int = Field(alias="durationMonths")

    model_config = {"populate_by_name": True, "from_attributes": True}
