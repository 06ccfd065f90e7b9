"""Google Security Command Center integration."""

from cloudsec_metrics.scc.health import SCC_SERVICE_KEY, get_scc_health_status
from cloudsec_metrics.scc.models import StatusIncident
from cloudsec_metrics.scc.sources import CommandCenterClient

__all__ = [
    "SCC_SERVICE_KEY",
    "CommandCenterClient",
    "StatusIncident",
    "get_scc_health_status",
]
