"""Configuration module for the cloud security metrics collector."""

from cloudsec_metrics.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
