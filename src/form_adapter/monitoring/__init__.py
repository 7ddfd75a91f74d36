"""
Adapter Monitoring
Prometheus-based metrics collection for the form adapter
"""

from .metrics import MetricsCollector, metrics_collector

__all__ = [
    "MetricsCollector",
    "metrics_collector",
]
