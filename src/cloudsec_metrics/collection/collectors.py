"""Collector set and per-cycle metrics collection."""

import logging
from dataclasses import dataclass
from datetime import timedelta

from cloudsec_metrics.config import Settings
from cloudsec_metrics.errors import CloudsecMetricsError, ConfigError
from cloudsec_metrics.prisma import ComplianceInfo, PrismaClient, PrismaCollector
from cloudsec_metrics.scc import CommandCenterClient, get_scc_health_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collectors:
    """Collectors enabled at startup; ``None`` means disabled."""

    prisma: PrismaCollector | None = None
    command_center: CommandCenterClient | None = None
    scc_sources: dict[str, str] | None = None
    scc_health_url: str | None = None


@dataclass
class MetricsSnapshot:
    """Values gathered in one collection cycle.

    A field stays ``None`` when its collector is disabled or failed in
    this cycle.
    """

    compliance_info: list[ComplianceInfo] | None = None
    prisma_health_status: int | None = None
    scc_health_status: int | None = None
    scc_sources_delay: dict[str, timedelta] | None = None


async def prepare_collectors(settings: Settings) -> Collectors:
    """Create collectors for every feature with credentials in ``settings``.

    Raises:
        ConfigError: If an enabled collector could not be initialised.
    """
    prisma = None
    if settings.prisma_enabled:
        logger.info("Initialising Prisma data collection")
        client = PrismaClient(
            login=settings.prisma_api_key,
            password=settings.prisma_api_password.get_secret_value(),
            api_url=settings.prisma_api_url,
        )
        try:
            await client.connect()
        except CloudsecMetricsError as e:
            raise ConfigError(f"can't connect to Prisma: {e}") from e
        prisma = PrismaCollector(client)

    command_center = None
    scc_sources = None
    if settings.scc_sources_enabled:
        logger.info("Initialising Google Security Command Center data collection")
        command_center = CommandCenterClient(settings.scc_org_id)
        try:
            scc_sources = await command_center.list_sources_by_name(
                settings.scc_sources_regex
            )
        except CloudsecMetricsError as e:
            raise ConfigError(f"can't get SCC sources information: {e}") from e

    return Collectors(
        prisma=prisma,
        command_center=command_center,
        scc_sources=scc_sources,
        scc_health_url=settings.scc_health_url if settings.scc_health_enabled else None,
    )


async def collect_metrics(collectors: Collectors) -> MetricsSnapshot:
    """Run every enabled collector once.

    A failing collector is logged and leaves its value unset, the others
    still run.
    """
    snapshot = MetricsSnapshot()

    if collectors.prisma is not None:
        try:
            snapshot.compliance_info = await collectors.prisma.gather_compliance_info()
        except CloudsecMetricsError as e:
            logger.error("Can't request compliance information, %s", e)
        except Exception as e:
            logger.exception("Unexpected error requesting compliance information: %s", e)

        try:
            snapshot.prisma_health_status = await collectors.prisma.get_api_health_status()
        except Exception as e:
            logger.exception("Unexpected error checking Prisma health: %s", e)

    if collectors.scc_health_url:
        try:
            snapshot.scc_health_status = await get_scc_health_status(collectors.scc_health_url)
        except Exception as e:
            logger.exception("Unexpected error checking SCC health: %s", e)

    if collectors.command_center is not None and collectors.scc_sources is not None:
        try:
            command_center = collectors.command_center
            snapshot.scc_sources_delay = await command_center.get_latest_event_delays(
                collectors.scc_sources
            )
        except CloudsecMetricsError as e:
            logger.error("Can't get SCC sources last update information, %s", e)
        except Exception as e:
            logger.exception("Unexpected error getting SCC sources last update: %s", e)

    return snapshot
