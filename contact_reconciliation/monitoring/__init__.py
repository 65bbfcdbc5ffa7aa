"""
Monitoring Module

Provides Prometheus metrics for consolidation.
"""

from contact_reconciliation.monitoring.metrics import Metrics, get_metrics

__all__ = [
    "Metrics",
    "get_metrics",
]
