"""Admin endpoints.

Combines admin sub-routers into a single ``admin_router`` under ``/api/admin``.
"""

from fastapi import APIRouter

from dealer_webhooks.api.admin.catalog import router as catalog_router
from dealer_webhooks.api.admin.logs import router as logs_router
from dealer_webhooks.api.admin.webhooks import router as webhooks_router

admin_router = APIRouter(prefix="/api/admin")

# Logs first so /webhooks/logs is not captured by /webhooks/{endpoint_id}
admin_router.include_router(logs_router)
admin_router.include_router(webhooks_router)
admin_router.include_router(catalog_router)

__all__ = ["admin_router"]
