"""Shared test fixtures for the dealer-webhooks test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from dealer_webhooks.config.settings import AppConfig, DatabaseConfig, DatabaseEngine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from dealer_webhooks.engine.client import HookEngine

ADMIN_TOKEN = "test-admin-token"  # noqa: S105


@pytest.fixture
def app_config() -> AppConfig:
    """Provide a test AppConfig with safe defaults."""
    return AppConfig(
        debug=True,
        admin_token=ADMIN_TOKEN,
        db=DatabaseConfig(
            engine=DatabaseEngine.SQLITE,
            dsn="sqlite+aiosqlite:///:memory:",
        ),
    )


@pytest.fixture
async def engine(app_config: AppConfig) -> AsyncIterator[HookEngine]:
    """An initialized engine over in-memory SQLite."""
    from dealer_webhooks.engine.client import HookEngine
    from dealer_webhooks.metrics.collector import HookMetrics

    eng = HookEngine(app_config, metrics=HookMetrics())
    await eng.initialize()
    yield eng
    await eng.close()


@pytest.fixture
def test_client(app_config: AppConfig):
    """Provide a FastAPI TestClient with the app wired to test config (no lifespan)."""
    from fastapi.testclient import TestClient

    from dealer_webhooks.api.app import create_app

    app = create_app(config=app_config)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"x-admin-token": ADMIN_TOKEN}
