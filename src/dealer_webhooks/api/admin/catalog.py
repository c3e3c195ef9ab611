"""Admin catalog: system fields, status options and active plans."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from dealer_webhooks.api.dependencies import get_engine, require_admin
from dealer_webhooks.api.schemas import (
    PlanResponse,
    StatusOptionResponse,
    SystemFieldResponse,
    SystemFieldsResponse,
)
from dealer_webhooks.engine.client import HookEngine  # noqa: TC001
from dealer_webhooks.mapping.fields import AccountStatus, SystemField

router = APIRouter(tags=["admin-catalog"], dependencies=[Depends(require_admin)])


@router.get("/system-fields")
async def list_system_fields() -> SystemFieldsResponse:
    return SystemFieldsResponse(
        fields=[SystemFieldResponse.from_field(f) for f in SystemField],
        status_options=[StatusOptionResponse.from_status(s) for s in AccountStatus],
    )


@router.get("/plans")
async def list_plans(
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> list[PlanResponse]:
    """Active plans a ``plan`` mapping may point at."""
    plans = await engine.plan_catalog.list_active_plans()
    return [PlanResponse.model_validate(p) for p in plans]
