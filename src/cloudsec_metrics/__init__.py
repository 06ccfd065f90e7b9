"""Cloud security metrics collector.

Periodically polls Prisma Cloud and Google Security Command Center and
forwards the derived metrics to Graphite.
"""

__version__ = "0.1.0"
