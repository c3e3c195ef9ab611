"""Public receive endpoint for provider deliveries."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from dealer_webhooks.api.dependencies import get_engine
from dealer_webhooks.engine.client import HookEngine  # noqa: TC001
from dealer_webhooks.engine.services.endpoint_service import RECEIVE_PATH

router = APIRouter(tags=["receive"])


@router.post(RECEIVE_PATH + "/{token}")
async def receive_webhook(
    token: str,
    request: Request,
    engine: Annotated[HookEngine, Depends(get_engine)],
) -> JSONResponse:
    """Log and process one delivery.

    The status code reflects the outcome: 201 for a created user, 200 for
    other successes and test-mode receipts, and the error's own status for
    failures (which are still logged).
    """
    body = await request.body()
    result = await engine.ingest_service.receive(
        token,
        method=request.method,
        url=str(request.url),
        headers=dict(request.headers),
        body=body,
    )
    return JSONResponse(status_code=result.status_code, content=result.body)
