"""
JSON-safe conversion for domain models.

Dataclasses become dicts, enums their values, datetimes ISO-8601 strings,
numpy scalars their Python equivalents and non-finite floats ``None``.
"""

import dataclasses
import math
from datetime import datetime
from enum import Enum
from typing import Any

import numpy as np


def to_json_safe(value: Any) -> Any:
    """Recursively convert *value* into plain JSON-compatible structures."""
    if isinstance(value, np.generic):
        value = value.item()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json_safe(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {str(key): to_json_safe(item) for key, item in value.items()}
    if isinstance(value, list | tuple | set | frozenset | np.ndarray):
        return [to_json_safe(item) for item in value]
    return value


class SerializableMixin:
    """Adds ``to_dict()`` to dataclass models."""

    def to_dict(self) -> dict[str, Any]:
        return to_json_safe(self)
