"""Tests for the metrics endpoint and middleware integration in the app."""

from __future__ import annotations

from dealer_webhooks.config.settings import AppConfig


class TestMetricsEndpoint:
    """Tests for the /metrics endpoint."""

    def test_metrics_endpoint_returns_prometheus_format(self, test_client) -> None:
        resp = test_client.get("/metrics")
        assert resp.status_code == 200
        assert "text/plain" in resp.headers.get("content-type", "")

    def test_request_metrics_use_route_template(self, test_client) -> None:
        test_client.post("/api/webhooks/receive/secret-token-123", content=b"{}")
        body = test_client.get("/metrics").text
        assert 'path="/api/webhooks/receive/{token}"' in body
        assert "secret-token-123" not in body

    def test_ingest_metrics_registered(self, app_config: AppConfig) -> None:
        from fastapi.testclient import TestClient

        from dealer_webhooks.api.app import create_app

        client = TestClient(create_app(config=app_config))
        body = client.get("/metrics").text
        assert "dealerhooks_apply_duration_seconds" in body
