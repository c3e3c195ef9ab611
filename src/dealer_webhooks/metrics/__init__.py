"""Metrics — Prometheus metrics collection and exposure."""

from __future__ import annotations

from dealer_webhooks.metrics.collector import HookMetrics, MetricsCollector

__all__ = ["HookMetrics", "MetricsCollector"]
