"""
Prometheus metrics for factory discovery runs.
"""

from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    REGISTRY,
    generate_latest,
)


class DiscoveryMetrics:
    """
    Counters and timings for the discovery scan.

    Tracks:
    - Block windows queried
    - Logs classified, split by new vs. known factory
    - Factories discovered per variant
    - Total scan duration
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics with custom registry or default"""
        self.registry = registry or REGISTRY

        self.windows_scanned_total = Counter(
            "factory_discovery_windows_scanned_total",
            "Total number of block windows queried for creation logs",
            registry=self.registry,
        )

        self.logs_classified_total = Counter(
            "factory_discovery_logs_classified_total",
            "Total creation logs classified",
            ["outcome"],
            registry=self.registry,
        )

        self.factories_discovered_total = Counter(
            "factory_discovery_factories_discovered_total",
            "Total factory contracts discovered",
            ["variant"],
            registry=self.registry,
        )

        self.scan_duration_seconds = Histogram(
            "factory_discovery_scan_duration_seconds",
            "Duration of a full discovery scan",
            buckets=[1, 5, 10, 30, 60, 300, 900, 3600],
            registry=self.registry,
        )

    def record_window(self):
        self.windows_scanned_total.inc()

    def record_new_factory(self, variant: str):
        self.logs_classified_total.labels(outcome="new").inc()
        self.factories_discovered_total.labels(variant=variant).inc()

    def record_known_factory_event(self):
        self.logs_classified_total.labels(outcome="known").inc()

    def record_scan_duration(self, duration_seconds: float):
        self.scan_duration_seconds.observe(duration_seconds)

    def export(self) -> str:
        """Get metrics in Prometheus text format"""
        return generate_latest(self.registry).decode("utf-8")
