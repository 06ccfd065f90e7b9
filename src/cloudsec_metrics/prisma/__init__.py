"""Prisma Cloud compliance provider integration."""

from cloudsec_metrics.prisma.client import PrismaClient, TokenState
from cloudsec_metrics.prisma.collector import PrismaCollector
from cloudsec_metrics.prisma.models import ComplianceInfo, CompliancePosture

__all__ = [
    "ComplianceInfo",
    "CompliancePosture",
    "PrismaClient",
    "PrismaCollector",
    "TokenState",
]
