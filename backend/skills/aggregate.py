"""
Grouping / aggregation skill.

Partitions raw rows by the stringified value of a dimension and sums a measure
per partition. Partitions keep first-seen order; the output is never sorted.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from core.config import DEFAULT_FILL
from core.models import ShelfField
from core.utils import coerce_number, group_key

_KEY = "__key__"


def _grouped_sums(
    rows: Sequence[Mapping[str, Any]],
    key_field: str,
    value_fields: Sequence[str],
) -> pd.DataFrame:
    """Sum each coerced value field per group key, plus a row count."""
    frame = pd.DataFrame({_KEY: [group_key(r.get(key_field)) for r in rows]})
    for i, name in enumerate(value_fields):
        frame[f"__v{i}__"] = [coerce_number(r.get(name)) for r in rows]
    aggs = {f"v{i}": (f"__v{i}__", "sum") for i in range(len(value_fields))}
    aggs["count"] = ("__v0__", "size")
    return frame.groupby(_KEY, sort=False).agg(**aggs)


def aggregate(
    rows: Sequence[Mapping[str, Any]],
    x_field: Optional[ShelfField],
    y_field: Optional[ShelfField],
    fill: str = DEFAULT_FILL,
) -> List[Dict[str, Any]]:
    """Sum ``y_field`` per distinct ``x_field`` value.

    Each record is ``{name, <y>: total, size: total, fill, _count}``; ``size``
    feeds the treemap.
    """
    if not rows or x_field is None or y_field is None:
        return []

    grouped = _grouped_sums(rows, x_field.name, [y_field.name])
    records: List[Dict[str, Any]] = []
    for key, total, count in grouped.itertuples(index=True, name=None):
        value = float(total)
        # later keys win when the measure is itself called "name", "size", ...
        record: Dict[str, Any] = {"name": key}
        record[y_field.name] = value
        record["size"] = value
        record["fill"] = fill
        record["_count"] = int(count)
        records.append(record)
    return records


def aggregate_points(
    rows: Sequence[Mapping[str, Any]],
    dim: ShelfField,
    meas_x: ShelfField,
    meas_y: ShelfField,
) -> List[Dict[str, Any]]:
    """Collapse a point cloud to one point per ``dim`` value.

    ``x``/``y`` are the summed measures and ``z`` the number of rows.
    """
    if not rows:
        return []
    grouped = _grouped_sums(rows, dim.name, [meas_x.name, meas_y.name])
    return [
        {"name": key, "x": float(x), "y": float(y), "z": int(count)}
        for key, x, y, count in grouped.itertuples(index=True, name=None)
    ]
