"""Graphite plaintext protocol client."""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from cloudsec_metrics.errors import TransportError

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 5.0


@dataclass(frozen=True)
class Metric:
    """A single Graphite data point."""

    name: str
    value: str
    timestamp: int = field(default_factory=lambda: int(time.time()))

    def render(self, prefix: str = "") -> str:
        """Render the point as one plaintext protocol line."""
        name = f"{prefix}.{self.name}" if prefix else self.name
        return f"{name} {self.value} {self.timestamp}\n"


class GraphiteClient:
    """Sends metrics to Carbon over TCP using the plaintext protocol.

    The connection is opened by ``connect`` and reused. A failed write
    drops the connection, it is reopened on the next send.
    """

    def __init__(self, host: str, port: int = 2003, prefix: str = "") -> None:
        """Initialize the Graphite client.

        Args:
            host: Carbon host name.
            port: Carbon plaintext port.
            prefix: Global prefix prepended to every metric name.
        """
        self._host = host
        self._port = port
        self._prefix = prefix.strip(".")
        self._writer: asyncio.StreamWriter | None = None

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def is_connected(self) -> bool:
        return self._writer is not None

    async def connect(self) -> None:
        """Open the TCP connection to Carbon.

        Raises:
            TransportError: If the connection could not be established.
        """
        await self.close()
        try:
            _, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=CONNECT_TIMEOUT,
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise TransportError(f"can't connect to Graphite at {self.address}: {e}") from e
        logger.debug("Connected to Graphite at %s", self.address)

    async def close(self) -> None:
        """Close the connection if open."""
        if self._writer is None:
            return
        writer, self._writer = self._writer, None
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug("Error closing Graphite connection: %s", e)

    async def send_metrics(self, metrics: list[Metric]) -> None:
        """Write all metrics in one go.

        Raises:
            TransportError: If the metrics could not be written.
        """
        if not metrics:
            return
        if self._writer is None:
            await self.connect()

        payload = "".join(m.render(self._prefix) for m in metrics).encode("utf-8")
        try:
            self._writer.write(payload)
            await self._writer.drain()
        except OSError as e:
            await self.close()
            raise TransportError(f"can't send metrics to Graphite at {self.address}: {e}") from e
        logger.debug("Sent %d metrics to Graphite", len(metrics))
