"""JSON-compatible rendering of the wellness dataclasses.

Dataclass fields become camelCase keys, enums their values and datetimes
ISO-8601 strings.  Fields set to ``None`` are dropped.  Dict keys that are
data (category names, day names) are kept as they are.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def to_json(value: Any) -> Any:
    """Recursively convert *value* into plain JSON types."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        rendered = {}
        for f in dataclasses.fields(value):
            field_value = getattr(value, f.name)
            if field_value is None:
                continue
            rendered[camel_case(f.name)] = to_json(field_value)
        return rendered
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, dict):
        return {str(to_json(k)): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    return value
