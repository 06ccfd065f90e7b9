"""Main entry point for the cloud security metrics collector."""

import asyncio
import logging
import sys
from collections.abc import Sequence

from dotenv import load_dotenv
from pydantic import ValidationError

from cloudsec_metrics.collection import CollectionLoop, prepare_collectors, prepare_senders
from cloudsec_metrics.config import Settings, load_settings
from cloudsec_metrics.errors import ConfigError

logger = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    """Configure application logging."""
    if settings.debug:
        location = "%(filename)s:%(lineno)d"
        level = logging.DEBUG
    else:
        location = "%(name)s"
        level = getattr(logging, settings.log_level.upper(), logging.INFO)

    log_format = (
        '{"time": "%(asctime)s", "level": "%(levelname)s", '
        f'"logger": "{location}", "message": "%(message)s"}}'
        if settings.log_format == "json"
        else f"%(asctime)s - {location} - %(levelname)s - %(message)s"
    )

    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


async def run(settings: Settings) -> None:
    """Prepare collectors and senders, then collect forever.

    Raises:
        ConfigError: If a collector or sender could not be initialised.
    """
    collectors = await prepare_collectors(settings)
    senders = await prepare_senders(settings)
    await CollectionLoop(collectors, senders, settings).run_forever()


def main(argv: Sequence[str] | None = None) -> None:
    """Run the collector."""
    # Load environment variables from .env file
    load_dotenv()

    try:
        settings = load_settings(argv)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings)

    logger.info(
        "Starting cloud security metrics collector",
        extra={
            "prisma_enabled": settings.prisma_enabled,
            "scc_sources_enabled": settings.scc_sources_enabled,
            "scc_health_enabled": settings.scc_health_enabled,
            "graphite_enabled": settings.graphite_enabled,
        },
    )

    try:
        asyncio.run(run(settings))
    except ConfigError as e:
        logger.critical("Can't initialise collectors and senders, %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
