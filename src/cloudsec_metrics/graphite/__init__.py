"""Graphite metrics sink."""

from cloudsec_metrics.graphite.client import GraphiteClient, Metric
from cloudsec_metrics.graphite.sender import (
    escape_metric_name,
    send_compliance_info,
    send_metric,
    send_sources_delay,
)

__all__ = [
    "GraphiteClient",
    "Metric",
    "escape_metric_name",
    "send_compliance_info",
    "send_metric",
    "send_sources_delay",
]
