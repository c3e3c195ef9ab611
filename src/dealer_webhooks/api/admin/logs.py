"""Admin webhook log history and payload field discovery."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from dealer_webhooks.api.dependencies import get_engine, require_admin
from dealer_webhooks.api.schemas import FlatFieldResponse, LogEntryResponse, LogPageResponse
from dealer_webhooks.engine.client import HookEngine  # noqa: TC001
from dealer_webhooks.payload.json_value import stringify, to_python

router = APIRouter(tags=["admin-logs"], dependencies=[Depends(require_admin)])


@router.get("/webhooks/logs")
async def list_all_logs(
    engine: Annotated[HookEngine, Depends(get_engine)],
    endpoint_id: Annotated[str | None, Query(alias="endpointId")] = None,
    status: Annotated[str | None, Query(description="pending, success or error")] = None,
    search: Annotated[str | None, Query()] = None,
    limit: Annotated[int | None, Query(ge=1)] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> LogPageResponse:
    """Global history across endpoints that have not been deleted."""
    rows, total = await engine.log_service.all_logs(
        endpoint_id=endpoint_id,
        status=status,
        search=search,
        limit=limit,
        offset=offset,
    )
    return LogPageResponse(
        items=[LogEntryResponse.from_entry(entry, name) for entry, name in rows],
        total=total,
        limit=engine.log_service.clamp_limit(limit),
        offset=offset,
    )


@router.get("/webhooks/{endpoint_id}/logs")
async def list_endpoint_logs(
    endpoint_id: str,
    engine: Annotated[HookEngine, Depends(get_engine)],
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> list[LogEntryResponse]:
    """Most recent deliveries of one endpoint, newest first."""
    entries = await engine.log_service.recent_logs(endpoint_id, limit=limit)
    return [LogEntryResponse.from_entry(e) for e in entries]


@router.get("/webhooks/{endpoint_id}/logs/{log_id}")
async def get_log(
    endpoint_id: str,
    log_id: int,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> LogEntryResponse:
    entry = await engine.log_service.get_log(endpoint_id, log_id)
    return LogEntryResponse.from_entry(entry)


@router.get("/webhooks/{endpoint_id}/logs/{log_id}/fields")
async def discover_fields(
    endpoint_id: str,
    log_id: int,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> list[FlatFieldResponse]:
    """Every scalar leaf of a stored body, for picking source paths."""
    leaves = await engine.log_service.discover_fields(endpoint_id, log_id)
    return [
        FlatFieldResponse(
            path=leaf.path,
            value=to_python(leaf.value),
            preview=stringify(leaf.value),
        )
        for leaf in leaves
    ]
