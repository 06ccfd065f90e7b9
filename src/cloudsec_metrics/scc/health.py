"""Google Security Command Center health, derived from the public status feed."""

import logging
from datetime import UTC, datetime

import httpx
from pydantic import ValidationError

from cloudsec_metrics.scc.models import incidents_adapter

logger = logging.getLogger(__name__)

SCC_SERVICE_KEY = "cloud-security-command-center"

REQUEST_TIMEOUT = 5.0


async def get_scc_health_status(
    url: str,
    http_client: httpx.AsyncClient | None = None,
    now: datetime | None = None,
) -> int:
    """Return 1 when Security Command Center has no ongoing incident, 0 otherwise.

    The incident list is fetched from the Google Cloud status dashboard,
    ``url`` should point to https://status.cloud.google.com/incidents.json.
    Any failure to fetch or decode the feed counts as unhealthy.

    Args:
        url: Incidents feed URL.
        http_client: Optional HTTP client for testing.
        now: Reference time, defaults to the current UTC time.
    """
    try:
        if http_client:
            response = await http_client.get(
                url, timeout=REQUEST_TIMEOUT, follow_redirects=True
            )
        else:
            async with httpx.AsyncClient(
                timeout=REQUEST_TIMEOUT, follow_redirects=True
            ) as client:
                response = await client.get(url)
        response.raise_for_status()
        incidents = incidents_adapter.validate_json(response.content)
    except (httpx.HTTPError, httpx.InvalidURL, ValidationError) as e:
        logger.debug("Google status feed unavailable: %s", e)
        return 0

    now = now or datetime.now(UTC)
    for incident in incidents:
        if incident.service_key == SCC_SERVICE_KEY and incident.is_ongoing(now):
            logger.info(
                "Google Security Command Center incident in process since %s: %r",
                incident.begin,
                incident.external_desc,
            )
            return 0
    return 1
