"""Metrics collection orchestration."""

from cloudsec_metrics.collection.collectors import (
    Collectors,
    MetricsSnapshot,
    collect_metrics,
    prepare_collectors,
)
from cloudsec_metrics.collection.scheduler import CollectionLoop
from cloudsec_metrics.collection.senders import Senders, prepare_senders, send_metrics

__all__ = [
    "CollectionLoop",
    "Collectors",
    "MetricsSnapshot",
    "Senders",
    "collect_metrics",
    "prepare_collectors",
    "prepare_senders",
    "send_metrics",
]
