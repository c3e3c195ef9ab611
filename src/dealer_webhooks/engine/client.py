"""HookEngine — central engine client owning all services."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dealer_webhooks.config.settings import AppConfig
    from dealer_webhooks.datastore.client import Datastore
    from dealer_webhooks.engine.services.endpoint_service import EndpointService
    from dealer_webhooks.engine.services.ingest_service import IngestService
    from dealer_webhooks.engine.services.log_service import LogService
    from dealer_webhooks.engine.services.replay_service import ReplayService
    from dealer_webhooks.mapping.apply import CommitStage
    from dealer_webhooks.mapping.contracts import AccountStore, PlanCatalog
    from dealer_webhooks.metrics.collector import HookMetrics

logger = logging.getLogger(__name__)

# Error messages
_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class HookEngine:
    """Central engine that owns the datastore, collaborators and services.

    The user/account store and plan catalog default to the SQL-backed
    implementations over the engine's own datastore; pass other
    implementations to plug the engine into an existing platform.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        metrics: HookMetrics | None = None,
        account_store: AccountStore | None = None,
        plan_catalog: PlanCatalog | None = None,
    ) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration.
            metrics: Optional metrics sink shared with the HTTP layer.
            account_store: Override for the user/account upsert contract.
            plan_catalog: Override for the plan lookup contract.
        """
        self._config = config
        self._initialized = False
        self._metrics = metrics

        self._datastore: Datastore | None = None
        self._account_store = account_store
        self._plan_catalog = plan_catalog
        self._commit_stage: CommitStage | None = None

        # Services
        self._endpoint_service: EndpointService | None = None
        self._log_service: LogService | None = None
        self._ingest_service: IngestService | None = None
        self._replay_service: ReplayService | None = None

    async def initialize(self) -> None:
        """Open the datastore, create tables and start services.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        # Import here to avoid circular deps
        from dealer_webhooks.datastore.client import Datastore
        from dealer_webhooks.engine.repository.accounts import SqlAccountStore, SqlPlanCatalog
        from dealer_webhooks.engine.services.endpoint_service import EndpointService
        from dealer_webhooks.engine.services.ingest_service import IngestService
        from dealer_webhooks.engine.services.log_service import LogService
        from dealer_webhooks.engine.services.replay_service import ReplayService
        from dealer_webhooks.mapping.apply import CommitStage

        self._datastore = Datastore(self._config.db)
        await self._datastore.open()

        if self._account_store is None:
            self._account_store = SqlAccountStore(self._datastore)
        if self._plan_catalog is None:
            self._plan_catalog = SqlPlanCatalog(self._datastore)
        self._commit_stage = CommitStage(self._account_store, self._plan_catalog)

        self._endpoint_service = EndpointService(self)
        self._log_service = LogService(self)
        self._ingest_service = IngestService(self)
        self._replay_service = ReplayService(self)

        self._initialized = True
        logger.info("Webhook engine initialized (%s)", self._config.db.engine.value)

    async def close(self) -> None:
        """Gracefully shut down all services and connections.

        Can be called multiple times (idempotent).
        """
        if not self._initialized:
            return

        self._endpoint_service = None
        self._log_service = None
        self._ingest_service = None
        self._replay_service = None
        self._commit_stage = None

        if self._datastore is not None:
            await self._datastore.close()
            self._datastore = None

        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        """Check if the engine is initialized."""
        return self._initialized

    @property
    def config(self) -> AppConfig:
        """Get the application configuration."""
        return self._config

    @property
    def metrics(self) -> HookMetrics | None:
        """Get the metrics sink (None when metrics are disabled)."""
        return self._metrics

    @property
    def datastore(self) -> Datastore:
        """Get the datastore instance.

        Raises:
            RuntimeError: If engine not initialized.
        """
        if self._datastore is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._datastore

    @property
    def account_store(self) -> AccountStore:
        if self._account_store is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._account_store

    @property
    def plan_catalog(self) -> PlanCatalog:
        if self._plan_catalog is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._plan_catalog

    @property
    def commit_stage(self) -> CommitStage:
        if self._commit_stage is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._commit_stage

    @property
    def endpoint_service(self) -> EndpointService:
        """Get the endpoint service."""
        if self._endpoint_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._endpoint_service

    @property
    def log_service(self) -> LogService:
        """Get the log service."""
        if self._log_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._log_service

    @property
    def ingest_service(self) -> IngestService:
        """Get the ingest service."""
        if self._ingest_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._ingest_service

    @property
    def replay_service(self) -> ReplayService:
        """Get the replay service."""
        if self._replay_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._replay_service

    async def health_check(self) -> dict[str, str]:
        """Check health status of engine components.

        Returns:
            Dictionary with component statuses ('ok', 'error', 'not_initialized').
        """
        status = {
            "engine": "ok" if self._initialized else "not_initialized",
            "datastore": "unknown",
        }
        if self._initialized:
            status["datastore"] = "ok" if self._datastore and self._datastore.is_open else "error"
        return status
