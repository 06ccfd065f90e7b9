"""Data models for the Google Cloud status incidents feed."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class StatusIncident(BaseModel):
    """A single entry of https://status.cloud.google.com/incidents.json."""

    model_config = ConfigDict(extra="ignore")

    service_key: str = Field(default="", description="Affected service key")
    external_desc: str = Field(default="", description="Public incident description")
    begin: datetime | None = Field(default=None, description="Incident start")
    end: datetime | None = Field(default=None, description="Incident end, absent while ongoing")

    @field_validator("begin", "end")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def is_ongoing(self, now: datetime) -> bool:
        """Check whether the incident has started and not yet ended at ``now``."""
        started = self.begin is None or self.begin < now
        return started and (self.end is None or self.end > now)


incidents_adapter = TypeAdapter(list[StatusIncident])
