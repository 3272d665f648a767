"""
Analytics Exporter

Renders analytics state for egress:
1. to_json() - Any payload of domain models as indented JSON
2. metrics_to_frame() - Raw samples as a pandas DataFrame, one row per sample
3. metrics_to_csv() - The same frame as CSV text
4. parse_format() - Validate a requested format ("json" | "csv")

Tags are flattened as ``key:value`` pairs joined by ``;``.
"""

import json
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

import pandas as pd

from trendwatch.domain.metrics import MetricSample
from trendwatch.domain.serialization import to_json_safe

CSV_COLUMNS: list[str] = ["metric_id", "name", "category", "value", "unit", "timestamp", "tags"]


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


def parse_format(value: "ExportFormat | str") -> ExportFormat:
    """
    Raises:
        ValueError: If *value* is not a supported export format
    """
    try:
        return ExportFormat(value)
    except ValueError:
        supported = ", ".join(f.value for f in ExportFormat)
        raise ValueError(f"Unsupported export format: {value!r} (supported: {supported})")


def to_json(payload: Any) -> str:
    """Render *payload* as indented JSON; unrecognised leaf values fall back to ``str()``."""
    return json.dumps(to_json_safe(payload), indent=2, default=str)


def _flatten_tags(tags: Mapping[str, str]) -> str:
    return ";".join(f"{key}:{value}" for key, value in tags.items())


def metrics_to_frame(samples_by_id: Mapping[str, Sequence[MetricSample]]) -> pd.DataFrame:
    """
    Build a DataFrame of raw samples.

    Args:
        samples_by_id: Series id -> samples (as returned by MetricStore.samples_in())

    Returns:
        DataFrame with CSV_COLUMNS, series in id order, samples in timestamp order
    """
    rows = [
        {
            "metric_id": sample.id,
            "name": sample.name,
            "category": sample.category.value,
            "value": sample.value,
            "unit": sample.unit,
            "timestamp": sample.timestamp.isoformat(),
            "tags": _flatten_tags(sample.tags),
        }
        for metric_id in sorted(samples_by_id)
        for sample in samples_by_id[metric_id]
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def metrics_to_csv(samples_by_id: Mapping[str, Sequence[MetricSample]]) -> str:
    return metrics_to_frame(samples_by_id).to_csv(index=False)
