"""Tests for CORS middleware configuration."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from dealer_webhooks.api.middleware.cors import setup_cors


class TestCORSMiddleware:
    def test_preflight_allows_admin_header(self):
        app = FastAPI()
        setup_cors(app)

        @app.get("/test")
        async def test_route():
            return {"ok": True}

        client = TestClient(app)
        resp = client.options(
            "/test",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "x-admin-token",
            },
        )
        assert resp.status_code == 200
        assert "access-control-allow-origin" in resp.headers

    def test_simple_request(self):
        app = FastAPI()
        setup_cors(app)

        @app.get("/test")
        async def test_route():
            return {"ok": True}

        client = TestClient(app)
        resp = client.get("/test", headers={"Origin": "http://localhost:3000"})
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
