"""
Prometheus Metrics

Defines and exports metrics for the reconciliation service.
"""

import structlog
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

logger = structlog.get_logger()

# Singleton metrics instance
_metrics: "Metrics | None" = None


class Metrics:
    """
    Prometheus metrics for the reconciliation service.

    Tracks:
    - Consolidation outcomes and latency
    - Cluster merges and demotions
    - Integrity faults (stored data breaking the single-primary rule)
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.consolidations_total = Counter(
            "contact_consolidations_total",
            "Total consolidations by outcome",
            ["outcome"],
            registry=registry,
        )

        self.consolidation_duration_seconds = Histogram(
            "contact_consolidation_duration_seconds",
            "Consolidation duration in seconds",
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
            registry=registry,
        )

        self.cluster_merges_total = Counter(
            "contact_cluster_merges_total",
            "Total clusters folded into an older cluster",
            registry=registry,
        )

        self.contacts_demoted_total = Counter(
            "contact_demotions_total",
            "Total contact rows re-linked to a surviving primary",
            ["kind"],  # primary | secondary
            registry=registry,
        )

        self.integrity_faults_total = Counter(
            "contact_integrity_faults_total",
            "Clusters found without exactly one primary",
            registry=registry,
        )

        logger.info("Prometheus metrics initialized")

    def track_consolidation(
        self,
        outcome: str,
        duration: float,
        demoted_primaries: int = 0,
        relinked_secondaries: int = 0,
    ) -> None:
        """Track one completed consolidation."""
        self.consolidations_total.labels(outcome=outcome).inc()
        self.consolidation_duration_seconds.observe(duration)

        if demoted_primaries:
            self.cluster_merges_total.inc(demoted_primaries)
            self.contacts_demoted_total.labels(kind="primary").inc(demoted_primaries)
        if relinked_secondaries:
            self.contacts_demoted_total.labels(kind="secondary").inc(relinked_secondaries)

    def track_integrity_fault(self) -> None:
        self.integrity_faults_total.inc()


def get_metrics() -> Metrics:
    """Get or create the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = Metrics()
    return _metrics
