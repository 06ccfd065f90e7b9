"""Collector settings and configuration management."""

from collections.abc import Sequence
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

GOOGLE_STATUS_INCIDENTS_URL = "https://status.cloud.google.com/incidents.json"


class Settings(BaseSettings):
    """Collector settings loaded from flags and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        cli_prog_name="cloudsec-metrics",
        cli_implicit_flags=True,
    )

    # Scheduling
    collect_period: float = Field(
        default=60.0,
        gt=0,
        description="Time between metrics collection, in seconds",
    )

    # Prisma Cloud
    prisma_api_url: str = Field(
        default="https://api.eu.prismacloud.io",
        description="Prisma API URL",
    )
    prisma_api_key: str | None = Field(
        default=None,
        description="Prisma API key",
    )
    prisma_api_password: SecretStr | None = Field(
        default=None,
        description="Prisma API password",
    )

    # Graphite
    graphite_host: str | None = Field(
        default=None,
        description="Graphite hostname",
    )
    graphite_port: int = Field(
        default=2003,
        ge=1,
        le=65535,
        description="Graphite port",
    )
    graphite_prefix: str = Field(
        default="",
        description="Graphite global prefix",
    )
    compliance_prefix: str = Field(
        default="compliance.",
        description="Graphite compliance metrics prefix",
    )
    scc_sources_prefix: str = Field(
        default="scc_sources.",
        description="Graphite SCC sources delay metrics prefix",
    )
    prisma_health_metric: str = Field(
        default="prisma.api_health",
        description="Graphite metric name for Prisma API health",
    )
    scc_health_metric: str = Field(
        default="scc.api_health",
        description="Graphite metric name for Google SCC health",
    )

    # Google Security Command Center
    scc_org_id: str | None = Field(
        default=None,
        description="Google SCC numeric organisation ID",
    )
    scc_sources_regex: str = Field(
        default=".",
        description="Google SCC sources Display Name regexp",
    )
    scc_health_url: str = Field(
        default=GOOGLE_STATUS_INCIDENTS_URL,
        description="Google Cloud status incidents feed, empty to disable",
    )

    # Logging
    debug: bool = Field(
        default=False,
        description="Debug mode",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @property
    def prisma_enabled(self) -> bool:
        """Prisma collection needs both the key and the password."""
        return bool(self.prisma_api_key) and bool(
            self.prisma_api_password and self.prisma_api_password.get_secret_value()
        )

    @property
    def scc_sources_enabled(self) -> bool:
        return bool(self.scc_org_id)

    @property
    def scc_health_enabled(self) -> bool:
        return bool(self.scc_health_url)

    @property
    def graphite_enabled(self) -> bool:
        return bool(self.graphite_host)


def load_settings(argv: Sequence[str] | None = None) -> Settings:
    """Build settings from command line flags on top of the environment.

    Args:
        argv: Command line arguments without the program name.
            ``None`` parses ``sys.argv``.
    """
    return Settings(_cli_parse_args=list(argv) if argv is not None else True)
