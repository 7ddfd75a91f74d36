"""Tests for Prometheus metrics."""

import pytest
from prometheus_client import CollectorRegistry

from form_adapter.monitoring import MetricsCollector


@pytest.fixture
def collector():
    """Collector on its own registry so tests never clash with the global one."""
    return MetricsCollector(enabled=True, registry=CollectorRegistry())


def _sample(collector, name, labels=None):
    return collector.registry.get_sample_value(name, labels or {})


@pytest.mark.unit
class TestMetricsCollector:
    """Test metric recording."""

    def test_batch_flush(self, collector):
        collector.record_batch_flush("success", 3, 0.002)
        collector.record_batch_flush("error", 1, 0.001)

        assert _sample(collector, "form_adapter_batch_flushes_total", {"status": "success"}) == 1
        assert _sample(collector, "form_adapter_batch_flushes_total", {"status": "error"}) == 1
        assert _sample(collector, "form_adapter_batch_size_sum") == 4

    def test_snapshot_and_skips(self, collector):
        collector.record_snapshot_refresh("engine_event")
        collector.record_snapshot_refresh("engine_event")
        collector.record_skipped_event("immediate")

        assert _sample(collector, "form_adapter_snapshot_refreshes_total", {"source": "engine_event"}) == 2
        assert _sample(collector, "form_adapter_change_events_skipped_total", {"phase": "immediate"}) == 1

    def test_errors(self, collector):
        collector.record_listener_error("listener")
        collector.record_transform_error("from_component")
        collector.record_update_error("list_remove")

        assert _sample(collector, "form_adapter_listener_errors_total", {"source": "listener"}) == 1
        assert _sample(collector, "form_adapter_transform_errors_total", {"direction": "from_component"}) == 1
        assert _sample(collector, "form_adapter_update_errors_total", {"operation": "list_remove"}) == 1

    def test_active_bridges(self, collector):
        collector.bridge_created()
        collector.bridge_created()
        collector.bridge_destroyed()

        assert _sample(collector, "form_adapter_active_bridges") == 1

    def test_disabled(self):
        collector = MetricsCollector(enabled=False, registry=CollectorRegistry())

        collector.record_snapshot_refresh("schema")
        collector.bridge_created()

        assert _sample(collector, "form_adapter_snapshot_refreshes_total", {"source": "schema"}) is None
        assert _sample(collector, "form_adapter_active_bridges") == 0

    def test_measure_duration(self, collector):
        durations = []

        with collector.measure_duration(durations.append):
            pass

        assert len(durations) == 1
        assert durations[0] >= 0

    def test_exposition(self, collector):
        collector.record_update_error("update")

        output = collector.get_metrics().decode()

        assert "form_adapter_update_errors_total" in output
