"""
Metric ingestion: the bounded MetricStore and the metric-source abstraction.
"""

from .base import BaseMetricSource, MetricSource, poll_source
from .metric_store import BUILTIN_AGGREGATORS, MetricStore, RecordResult, StoreSummary

__all__ = [
    "MetricStore",
    "RecordResult",
    "StoreSummary",
    "BUILTIN_AGGREGATORS",
    "BaseMetricSource",
    "MetricSource",
    "poll_source",
]
