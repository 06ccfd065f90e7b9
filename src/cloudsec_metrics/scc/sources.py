"""Google Security Command Center sources and their latest events."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions

from cloudsec_metrics.errors import CommandCenterError, ConfigError

if TYPE_CHECKING:
    from google.cloud.securitycenter import SecurityCenterAsyncClient

logger = logging.getLogger(__name__)

# Listing and finding calls page through potentially large result sets
API_TIMEOUT = 20.0


class CommandCenterClient:
    """Read-only access to Security Command Center sources and findings.

    Based on the list_sources and list_filtered_findings samples from
    https://github.com/GoogleCloudPlatform/python-docs-samples.
    """

    def __init__(
        self,
        org_id: str,
        client: SecurityCenterAsyncClient | None = None,
    ) -> None:
        """Initialize the Security Command Center client.

        Args:
            org_id: Numeric organisation ID.
            client: Optional Security Center client for testing.
        """
        self._org_id = org_id
        self._client = client

    @property
    def parent(self) -> str:
        return f"organizations/{self._org_id}"

    def _get_client(self) -> SecurityCenterAsyncClient:
        """Get or create the Security Center client.

        Credentials are resolved through Application Default Credentials.
        """
        if self._client is None:
            from google.cloud import securitycenter

            self._client = securitycenter.SecurityCenterAsyncClient()
        return self._client

    async def list_sources_by_name(self, name_regex: str) -> dict[str, str]:
        """List organisation sources whose display name matches ``name_regex``.

        Args:
            name_regex: Regular expression searched in each display name.

        Returns:
            Mapping of source resource name to display name.

        Raises:
            ConfigError: If the expression does not compile.
            CommandCenterError: If the sources could not be listed.
        """
        try:
            pattern = re.compile(name_regex)
        except re.error as e:
            raise ConfigError(f"error compiling sources name regex {name_regex!r}: {e}") from e

        result: dict[str, str] = {}
        try:
            client = self._get_client()
            pager = await client.list_sources(
                request={"parent": self.parent},
                timeout=API_TIMEOUT,
            )
            async for source in pager:
                if pattern.search(source.display_name):
                    result[source.name] = source.display_name
        except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise CommandCenterError(f"error listing sources of {self.parent}: {e}") from e

        logger.info("Tracking %d Security Command Center sources", len(result))
        return result

    async def get_latest_event_delays(
        self,
        sources: dict[str, str],
        now: datetime | None = None,
    ) -> dict[str, timedelta]:
        """Get the time elapsed since the newest finding of every source.

        Sources are queried one after another. A source without findings,
        or whose newest finding has no event time, is left out of the result.

        Args:
            sources: Mapping of source resource name to display name.
            now: Reference time, defaults to the current UTC time.

        Returns:
            Mapping of source display name to delay.

        Raises:
            CommandCenterError: If the findings could not be listed.
        """
        result: dict[str, timedelta] = {}
        client = self._get_client()
        for source_id, display_name in sources.items():
            try:
                pager = await client.list_findings(
                    request={
                        "parent": source_id,
                        "order_by": "event_time desc",
                        "page_size": 1,
                    },
                    timeout=API_TIMEOUT,
                )
                # Only the first result of the first page is needed
                latest = None
                async for finding_result in pager:
                    latest = finding_result.finding
                    break
            except google_exceptions.GoogleAPIError as e:
                raise CommandCenterError(f"error listing findings of {source_id}: {e}") from e

            if latest is None:
                logger.debug("No findings for source %s", display_name)
                continue
            if latest.event_time is None:
                logger.warning("Newest finding of source %s has no event time", display_name)
                continue
            result[display_name] = (now or datetime.now(UTC)) - latest.event_time
        return result
