"""FastAPI dependency injection helpers.

Usage in a route::

    @router.get("/webhooks")
    async def list_webhooks(
        _: Annotated[None, Depends(require_admin)],
        engine: Annotated[HookEngine, Depends(get_engine)],
    ) -> ...:
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Header, Request

from dealer_webhooks.api.middleware.auth import AUTH_HEADER_ADMIN, authenticate_admin
from dealer_webhooks.engine.client import HookEngine  # noqa: TC001
from dealer_webhooks.errors.definitions import ErrEngineUnavailable


def get_engine(request: Request) -> HookEngine:
    """Retrieve the engine from ``app.state``.

    The engine is stored on ``app.state.engine`` during lifespan startup.

    Raises:
        HookError: 503 if the engine is not available.
    """
    engine: HookEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise ErrEngineUnavailable
    return engine


def require_admin(
    request: Request,
    x_admin_token: Annotated[str, Header(alias=AUTH_HEADER_ADMIN)] = "",
) -> None:
    """Dependency that requires the operator admin token.

    Raises:
        HookError: 401 if the token is missing or wrong.
    """
    authenticate_admin(request.app.state.config.admin_token, x_admin_token)
