"""
Metrics Collection
Prometheus metrics for batching, snapshot mirroring and event dispatch
"""

import time
from contextlib import contextmanager
from typing import Callable

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from ..core.config import get_settings


class MetricsCollector:
    """
    Collects and exposes Prometheus metrics for the form adapter.
    """

    def __init__(self, enabled: bool = True, registry: CollectorRegistry = REGISTRY) -> None:
        self.enabled = enabled
        self.registry = registry

        # Batching metrics
        self.batch_flushes_total = Counter(
            "form_adapter_batch_flushes_total",
            "Total number of aggregate writes issued by update batchers",
            ["status"],
            registry=registry,
        )
        self.batch_size = Histogram(
            "form_adapter_batch_size",
            "Number of distinct paths per aggregate write",
            buckets=[1, 2, 5, 10, 25, 50, 100],
            registry=registry,
        )
        self.batch_flush_duration = Histogram(
            "form_adapter_batch_flush_duration_seconds",
            "Time spent applying an aggregate write",
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5],
            registry=registry,
        )

        # Snapshot metrics
        self.snapshot_refreshes_total = Counter(
            "form_adapter_snapshot_refreshes_total",
            "Total number of mirrored snapshot refreshes",
            ["source"],
            registry=registry,
        )
        self.change_events_skipped_total = Counter(
            "form_adapter_change_events_skipped_total",
            "Change events ignored by the bridge",
            ["phase"],
            registry=registry,
        )
        self.active_bridges = Gauge(
            "form_adapter_active_bridges",
            "Number of live (not destroyed) bridges",
            registry=registry,
        )

        # Error metrics
        self.listener_errors_total = Counter(
            "form_adapter_listener_errors_total",
            "Errors raised by listeners, callbacks and hooks",
            ["source"],
            registry=registry,
        )
        self.transform_errors_total = Counter(
            "form_adapter_transform_errors_total",
            "Errors raised by value transformers",
            ["direction"],
            registry=registry,
        )
        self.update_errors_total = Counter(
            "form_adapter_update_errors_total",
            "Engine writes that failed",
            ["operation"],
            registry=registry,
        )

    def record_batch_flush(self, status: str, size: int, duration: float) -> None:
        """Record an aggregate write."""
        if not self.enabled:
            return
        self.batch_flushes_total.labels(status=status).inc()
        self.batch_size.observe(size)
        self.batch_flush_duration.observe(duration)

    def record_snapshot_refresh(self, source: str) -> None:
        """Record a snapshot refresh (engine_event, schema, reset)."""
        if self.enabled:
            self.snapshot_refreshes_total.labels(source=source).inc()

    def record_skipped_event(self, phase: str) -> None:
        if self.enabled:
            self.change_events_skipped_total.labels(phase=phase).inc()

    def record_listener_error(self, source: str) -> None:
        if self.enabled:
            self.listener_errors_total.labels(source=source).inc()

    def record_transform_error(self, direction: str) -> None:
        if self.enabled:
            self.transform_errors_total.labels(direction=direction).inc()

    def record_update_error(self, operation: str) -> None:
        if self.enabled:
            self.update_errors_total.labels(operation=operation).inc()

    def bridge_created(self) -> None:
        if self.enabled:
            self.active_bridges.inc()

    def bridge_destroyed(self) -> None:
        if self.enabled:
            self.active_bridges.dec()

    @contextmanager
    def measure_duration(self, callback: Callable[[float], None]):
        """Context manager to measure operation duration."""
        start = time.perf_counter()
        try:
            yield
        finally:
            callback(time.perf_counter() - start)

    def get_metrics(self) -> bytes:
        """Get metrics in Prometheus format."""
        return generate_latest(self.registry)


# Global metrics collector instance
metrics_collector = MetricsCollector(enabled=get_settings().enable_metrics)
