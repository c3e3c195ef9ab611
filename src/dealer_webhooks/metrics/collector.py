"""Metrics collector — Prometheus counters and histograms for ingestion.

- ``dealerhooks_received_total`` counter by mode (test, inactive, production, replay)
- ``dealerhooks_processed_total`` counter by outcome and error code
- ``dealerhooks_apply_duration_seconds`` histogram of the apply/commit stage
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator


_PREFIX = "dealerhooks"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`HookMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class HookMetrics:
    """High-level webhook ingestion metrics."""

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._received = self._collector.counter(
            f"{_PREFIX}_received",
            "Webhook deliveries received, by processing mode",
            ("mode",),
        )
        self._processed = self._collector.counter(
            f"{_PREFIX}_processed",
            "Webhook deliveries processed, by outcome",
            ("outcome", "code"),
        )
        self._apply_duration = self._collector.histogram(
            f"{_PREFIX}_apply_duration_seconds",
            "Duration of the apply/commit stage",
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def record_received(self, mode: str) -> None:
        self._received.labels(mode=mode).inc()

    def record_success(self, action: str) -> None:
        self._processed.labels(outcome="success", code=action).inc()

    def record_failure(self, code: str) -> None:
        self._processed.labels(outcome="error", code=code).inc()

    @contextmanager
    def track_apply(self) -> Iterator[None]:
        """Track the duration of one apply/commit."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._apply_duration.observe(time.monotonic() - start)
