"""Admin authentication by shared token.

The admin surface is guarded by a single operator token sent in the
``x-admin-token`` header. The receive endpoint is public; its token in the
URL path is the only credential a provider holds.
"""

from __future__ import annotations

import hmac

from dealer_webhooks.errors.definitions import ErrUnauthorized

AUTH_HEADER_ADMIN = "x-admin-token"  # noqa: S105


def authenticate_admin(configured_token: str, presented_token: str) -> None:
    """Check a presented admin token against the configured one.

    An empty configured token disables the admin surface entirely.

    Raises:
        HookError: 401 if the token is missing or does not match.
    """
    if not configured_token or not presented_token:
        raise ErrUnauthorized
    if not hmac.compare_digest(configured_token.encode("utf-8"), presented_token.encode("utf-8")):
        raise ErrUnauthorized
