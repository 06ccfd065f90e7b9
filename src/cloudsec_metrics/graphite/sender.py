"""Mapping of collected values onto Graphite metrics."""

import time
from datetime import timedelta

from cloudsec_metrics.graphite.client import GraphiteClient, Metric
from cloudsec_metrics.prisma.models import ComplianceInfo

_ESCAPED_CHARS = str.maketrans({c: "_" for c in " .{}()/"})


def escape_metric_name(name: str) -> str:
    """Replace characters Graphite treats specially in a path segment with ``_``."""
    return name.translate(_ESCAPED_CHARS)


async def send_compliance_info(
    graphite: GraphiteClient,
    prefix: str,
    compliance_info: list[ComplianceInfo],
) -> None:
    """Send assets compliance information, four points per standard."""
    now = int(time.time())
    metrics = []
    for info in compliance_info:
        name = escape_metric_name(prefix + info.name)
        metrics.extend(
            [
                Metric(f"{name}.policies_total", str(info.policies_count), now),
                Metric(f"{name}.assets_passed", str(info.passed_assets_count), now),
                Metric(f"{name}.assets_failed", str(info.failed_assets_count), now),
                Metric(f"{name}.assets_total", str(info.total_assets_count), now),
            ]
        )
    await graphite.send_metrics(metrics)


async def send_sources_delay(
    graphite: GraphiteClient,
    prefix: str,
    delays: dict[str, timedelta],
) -> None:
    """Send the delay since the latest event of every SCC source, in seconds."""
    now = int(time.time())
    metrics = [
        Metric(
            f"{escape_metric_name(prefix + name)}.delay_seconds",
            f"{delay.total_seconds():f}",
            now,
        )
        for name, delay in delays.items()
    ]
    await graphite.send_metrics(metrics)


async def send_metric(graphite: GraphiteClient, name: str, value: str) -> None:
    """Send a single metric."""
    await graphite.send_metrics([Metric(escape_metric_name(name), value, int(time.time()))])
