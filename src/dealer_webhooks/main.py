"""Application entry point for the dealer webhooks server."""

from __future__ import annotations

import logging

import uvicorn

from dealer_webhooks.config.settings import AppConfig


def main() -> None:
    """Start the webhook server."""
    config = AppConfig()
    logging.basicConfig(
        level=config.server.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "dealer_webhooks.api.app:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=config.debug,
        log_level=config.server.log_level,
    )


if __name__ == "__main__":
    main()
