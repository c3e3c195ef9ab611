"""API middleware — admin auth, CORS."""

from dealer_webhooks.api.middleware.auth import AUTH_HEADER_ADMIN, authenticate_admin
from dealer_webhooks.api.middleware.cors import setup_cors

__all__ = ["AUTH_HEADER_ADMIN", "authenticate_admin", "setup_cors"]
