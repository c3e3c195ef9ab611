"""Admin webhook endpoint management: lifecycle and field mappings."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from dealer_webhooks.api.dependencies import get_engine, require_admin
from dealer_webhooks.api.schemas import (
    EndpointCreateRequest,
    EndpointDuplicateRequest,
    EndpointResponse,
    EndpointUpdateRequest,
    MappingResponse,
    MappingUpsertRequest,
    PreviewRequest,
    PreviewResponse,
    ReprocessRequest,
)
from dealer_webhooks.engine.client import HookEngine  # noqa: TC001
from dealer_webhooks.engine.models.endpoint import WebhookEndpoint  # noqa: TC001
from dealer_webhooks.payload.json_value import from_python

router = APIRouter(tags=["admin-webhooks"], dependencies=[Depends(require_admin)])


def endpoint_response(engine: HookEngine, endpoint: WebhookEndpoint) -> EndpointResponse:
    return EndpointResponse(
        id=endpoint.id,
        name=endpoint.name,
        token=endpoint.token,
        receive_url=engine.endpoint_service.receive_url(endpoint),
        is_active=endpoint.is_active,
        test_mode=endpoint.test_mode,
        mappings=[MappingResponse.from_mapping(m) for m in endpoint.mapping_snapshot()],
        created_at=endpoint.created_at,
        updated_at=endpoint.updated_at,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/webhooks", status_code=201)
async def create_webhook(
    body: EndpointCreateRequest,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> EndpointResponse:
    """Create an endpoint (inactive, test mode, no mappings)."""
    endpoint = await engine.endpoint_service.create_endpoint(body.name)
    return endpoint_response(engine, endpoint)


@router.get("/webhooks")
async def list_webhooks(
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> list[EndpointResponse]:
    endpoints = await engine.endpoint_service.list_endpoints()
    return [endpoint_response(engine, e) for e in endpoints]


@router.get("/webhooks/{endpoint_id}")
async def get_webhook(
    endpoint_id: str,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> EndpointResponse:
    endpoint = await engine.endpoint_service.get_endpoint(endpoint_id)
    return endpoint_response(engine, endpoint)


@router.patch("/webhooks/{endpoint_id}")
async def update_webhook(
    endpoint_id: str,
    body: EndpointUpdateRequest,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> EndpointResponse:
    endpoint = await engine.endpoint_service.rename(endpoint_id, body.name)
    return endpoint_response(engine, endpoint)


@router.delete("/webhooks/{endpoint_id}", status_code=204)
async def delete_webhook(
    endpoint_id: str,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> None:
    """Soft-delete an endpoint; its logs are kept."""
    await engine.endpoint_service.delete_endpoint(endpoint_id)


@router.post("/webhooks/{endpoint_id}/activate")
async def activate_webhook(
    endpoint_id: str,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> EndpointResponse:
    """Switch to production (requires an email mapping)."""
    endpoint = await engine.endpoint_service.activate(endpoint_id)
    return endpoint_response(engine, endpoint)


@router.post("/webhooks/{endpoint_id}/deactivate")
async def deactivate_webhook(
    endpoint_id: str,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> EndpointResponse:
    """Return to test mode."""
    endpoint = await engine.endpoint_service.deactivate(endpoint_id)
    return endpoint_response(engine, endpoint)


@router.post("/webhooks/{endpoint_id}/duplicate", status_code=201)
async def duplicate_webhook(
    endpoint_id: str,
    engine: Annotated[HookEngine, Depends(get_engine)],
    body: EndpointDuplicateRequest | None = None,
) -> EndpointResponse:
    name = body.name if body is not None else None
    endpoint = await engine.endpoint_service.duplicate(endpoint_id, name=name)
    return endpoint_response(engine, endpoint)


# ---------------------------------------------------------------------------
# Mappings
# ---------------------------------------------------------------------------


@router.put("/webhooks/{endpoint_id}/mappings/{system_field}")
async def set_mapping(
    endpoint_id: str,
    system_field: str,
    body: MappingUpsertRequest,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> EndpointResponse:
    endpoint = await engine.endpoint_service.set_mapping(
        endpoint_id,
        system_field,
        body.value,
        prefix=body.prefix,
        suffix=body.suffix,
    )
    return endpoint_response(engine, endpoint)


@router.delete("/webhooks/{endpoint_id}/mappings/{system_field}")
async def remove_mapping(
    endpoint_id: str,
    system_field: str,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> EndpointResponse:
    endpoint = await engine.endpoint_service.remove_mapping(endpoint_id, system_field)
    return endpoint_response(engine, endpoint)


# ---------------------------------------------------------------------------
# Preview / reprocess
# ---------------------------------------------------------------------------


@router.post("/webhooks/{endpoint_id}/preview")
async def preview_webhook(
    endpoint_id: str,
    engine: Annotated[HookEngine, Depends(get_engine)],
    body: PreviewRequest | None = None,
) -> PreviewResponse:
    """Resolve the current mapping against a stored or sample payload, without writing."""
    request = body or PreviewRequest()
    sample = from_python(request.sample) if request.sample is not None else None
    result = await engine.replay_service.preview(endpoint_id, log_id=request.log_id, sample=sample)
    return PreviewResponse.model_validate(result)


@router.post("/webhooks/{endpoint_id}/reprocess")
async def reprocess_webhook(
    endpoint_id: str,
    engine: Annotated[HookEngine, Depends(get_engine)],
    body: ReprocessRequest | None = None,
) -> JSONResponse:
    """Re-run a stored delivery (latest by default) with the current mapping."""
    log_id = body.log_id if body is not None else None
    result = await engine.replay_service.reprocess(endpoint_id, log_id)
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.post("/webhooks/{endpoint_id}/test")
async def capture_webhook_sample(
    endpoint_id: str,
    request: Request,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> JSONResponse:
    """Log the raw request body as a test-mode delivery for the endpoint."""
    body = await request.body()
    # Admin credentials stay out of the log store
    headers = {"content-type": request.headers.get("content-type", "application/json")}
    result = await engine.ingest_service.capture_sample(
        endpoint_id, url=str(request.url), headers=headers, body=body
    )
    return JSONResponse(status_code=result.status_code, content=result.body)
