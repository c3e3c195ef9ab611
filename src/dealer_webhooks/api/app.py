"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from dealer_webhooks import __version__
from dealer_webhooks.api.admin import admin_router
from dealer_webhooks.api.middleware.cors import setup_cors
from dealer_webhooks.api.receive import router as receive_router
from dealer_webhooks.config.settings import AppConfig
from dealer_webhooks.engine.client import HookEngine
from dealer_webhooks.errors.hook_errors import HookError
from dealer_webhooks.metrics.collector import HookMetrics
from dealer_webhooks.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle hooks.

    Initialises the engine (datastore, services) on startup and gracefully
    shuts down on exit.
    """
    config: AppConfig = app.state.config
    engine = HookEngine(config, metrics=getattr(app.state, "metrics", None))

    try:
        await engine.initialize()
        app.state.engine = engine
        logger.info("Webhook engine started")
        yield
    finally:
        await engine.close()
        logger.info("Webhook engine shut down")


def create_app(*, config: AppConfig | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="dealer-webhooks",
        version=__version__,
        description="Webhook ingestion and dynamic field mapping for dealership accounts",
        lifespan=_lifespan,
    )

    # Store config on app.state for lifespan and dependency access
    app.state.config = config
    if config.metrics.enabled:
        app.state.metrics = HookMetrics()

    # -- Middleware --
    setup_cors(app)
    if config.metrics.enabled:
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)

    # -- Error handler --
    @app.exception_handler(HookError)
    async def _hook_error_handler(request: Request, exc: HookError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.to_dict()},
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health() -> JSONResponse:
        """Engine and datastore status; 503 until the engine is running."""
        engine: HookEngine | None = getattr(app.state, "engine", None)
        if engine is None:
            components = {"engine": "not_initialized", "datastore": "unknown"}
        else:
            components = await engine.health_check()
        healthy = all(state == "ok" for state in components.values())
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "ok" if healthy else "unavailable",
                "version": config.version,
                **components,
            },
        )

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        metrics: HookMetrics | None = getattr(app.state, "metrics", None)
        body = generate_latest(metrics.registry) if metrics is not None else b""
        return Response(
            content=body,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    app.include_router(receive_router)
    app.include_router(admin_router)

    return app
