"""Sender set and per-cycle metrics delivery."""

import logging
from dataclasses import dataclass

from cloudsec_metrics.collection.collectors import MetricsSnapshot
from cloudsec_metrics.config import Settings
from cloudsec_metrics.errors import CloudsecMetricsError, ConfigError
from cloudsec_metrics.graphite import (
    GraphiteClient,
    send_compliance_info,
    send_metric,
    send_sources_delay,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Senders:
    """Senders enabled at startup; ``None`` means disabled."""

    graphite: GraphiteClient | None = None


async def prepare_senders(settings: Settings) -> Senders:
    """Create senders configured in ``settings``.

    Raises:
        ConfigError: If an enabled sender could not be initialised.
    """
    graphite = None
    if settings.graphite_enabled:
        logger.info(
            "Initialising Graphite sender for %s:%d",
            settings.graphite_host,
            settings.graphite_port,
        )
        graphite = GraphiteClient(
            settings.graphite_host,
            settings.graphite_port,
            settings.graphite_prefix,
        )
        try:
            await graphite.connect()
        except CloudsecMetricsError as e:
            raise ConfigError(f"can't create Graphite: {e}") from e
    return Senders(graphite=graphite)


async def send_metrics(snapshot: MetricsSnapshot, senders: Senders, settings: Settings) -> None:
    """Send every collected value; a failed send does not stop the others."""
    graphite = senders.graphite
    if graphite is None:
        return

    if snapshot.compliance_info is not None:
        try:
            await send_compliance_info(
                graphite, settings.compliance_prefix, snapshot.compliance_info
            )
        except CloudsecMetricsError as e:
            logger.error("Can't send compliance information, %s", e)

    if snapshot.prisma_health_status is not None:
        try:
            await send_metric(
                graphite, settings.prisma_health_metric, str(snapshot.prisma_health_status)
            )
        except CloudsecMetricsError as e:
            logger.error("Can't send Prisma health status, %s", e)

    if snapshot.scc_health_status is not None:
        try:
            await send_metric(
                graphite, settings.scc_health_metric, str(snapshot.scc_health_status)
            )
        except CloudsecMetricsError as e:
            logger.error("Can't send SCC health status, %s", e)

    if snapshot.scc_sources_delay is not None:
        try:
            await send_sources_delay(
                graphite, settings.scc_sources_prefix, snapshot.scc_sources_delay
            )
        except CloudsecMetricsError as e:
            logger.error("Can't send SCC sources delay information, %s", e)
