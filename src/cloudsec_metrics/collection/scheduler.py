"""Fixed-period collection loop."""

import asyncio
import logging
from datetime import UTC, datetime

from cloudsec_metrics.collection.collectors import Collectors, collect_metrics
from cloudsec_metrics.collection.senders import Senders, send_metrics
from cloudsec_metrics.config import Settings

logger = logging.getLogger(__name__)


class CollectionLoop:
    """Runs collect-then-send on a fixed period.

    The first cycle starts immediately. A cycle that takes longer than the
    period delays the next one, cycles never overlap. The loop has no stop
    condition of its own.
    """

    def __init__(self, collectors: Collectors, senders: Senders, settings: Settings) -> None:
        self._collectors = collectors
        self._senders = senders
        self._settings = settings
        self._period = settings.collect_period

        self._last_run: datetime | None = None
        self._run_count = 0

    async def run_once(self) -> None:
        """Run one full collection and delivery cycle."""
        self._last_run = datetime.now(UTC)
        self._run_count += 1
        snapshot = await collect_metrics(self._collectors)
        await send_metrics(snapshot, self._senders, self._settings)
        logger.debug("Collection cycle done: %s", self.get_status())

    async def run_forever(self) -> None:
        """Run cycles until the process is terminated."""
        loop = asyncio.get_running_loop()
        logger.info("Collecting metrics every %.1f seconds", self._period)
        next_tick = loop.time()
        while True:
            next_tick += self._period
            try:
                await self.run_once()
            except Exception as e:
                logger.exception("Collection cycle failed: %s", e)

            delay = next_tick - loop.time()
            if delay < 0:
                logger.warning(
                    "Collection cycle took %.1f seconds longer than the period",
                    -delay,
                )
                next_tick = loop.time()
                delay = 0
            await asyncio.sleep(delay)

    def get_status(self) -> dict:
        """Get loop status."""
        return {
            "collect_period_seconds": self._period,
            "last_run": self._last_run.isoformat() if self._last_run else None,
            "run_count": self._run_count,
        }
