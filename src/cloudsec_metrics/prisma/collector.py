"""Prisma Cloud compliance and health collection."""

import logging

from pydantic import ValidationError

from cloudsec_metrics.errors import CloudsecMetricsError, DecodeError
from cloudsec_metrics.prisma.client import PrismaClient
from cloudsec_metrics.prisma.models import ComplianceInfo, CompliancePosture

logger = logging.getLogger(__name__)

COMPLIANCE_POSTURE_PATH = "/v2/compliance/posture?timeType=to_now&timeUnit=day"
HEALTH_CHECK_PATH = "/check"


class PrismaCollector:
    """Collects compliance posture and API health from Prisma Cloud."""

    def __init__(self, client: PrismaClient) -> None:
        self._client = client

    @property
    def client(self) -> PrismaClient:
        return self._client

    async def gather_compliance_info(self) -> list[ComplianceInfo]:
        """Get assets compliance information for the last day.

        https://pan.dev/prisma-cloud/api/cspm/get-compliance-posture-v-2/

        Returns:
            One entry per compliance standard.

        Raises:
            DecodeError: If the response does not have the expected shape.
            CloudsecMetricsError: If the request itself failed.
        """
        data = await self._client.request("GET", COMPLIANCE_POSTURE_PATH)
        try:
            posture = CompliancePosture.model_validate_json(data)
        except ValidationError as e:
            raise DecodeError(f"error decoding compliance posture: {e}") from e
        return posture.compliance_details

    async def get_api_health_status(self) -> int:
        """Return 1 when the Prisma API health check succeeds, 0 otherwise.

        https://pan.dev/prisma-cloud/api/cspm/health-check/
        """
        try:
            await self._client.request("GET", HEALTH_CHECK_PATH)
        except CloudsecMetricsError as e:
            logger.debug("Prisma API health check failed: %s", e)
            return 0
        return 1
