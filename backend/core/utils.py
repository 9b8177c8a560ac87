"""
Shared utility helpers for the chart engine.

Pure functions — no I/O, no side effects.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Sequence, Union

import numpy as np
import pandas as pd

RawRows = Union[Sequence[Mapping[str, Any]], pd.DataFrame]


# ---------------------------------------------------------------------------
# DataFrame safety
# ---------------------------------------------------------------------------

def df_json_safe(df: pd.DataFrame) -> pd.DataFrame:
    """Replace +/-inf -> NaN, then NaN -> None so JSON serialization works."""
    if df.empty:
        return df
    tmp = df.replace([np.inf, -np.inf], np.nan)
    tmp = tmp.astype(object)
    return tmp.where(pd.notna(tmp), None)


def to_records(rows: RawRows) -> List[Dict[str, Any]]:
    """Normalize a raw dataset (records or DataFrame) to a list of dicts."""
    if isinstance(rows, pd.DataFrame):
        return df_json_safe(rows).to_dict(orient="records")
    return [dict(r) for r in rows]


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------

def coerce_number(val: Any) -> float:
    """Parse a raw cell as a float; anything unparsable becomes 0."""
    if val is None:
        return 0.0
    if isinstance(val, bool):
        return 1.0 if val else 0.0
    if isinstance(val, (int, float, np.number)):
        num = float(val)
    elif isinstance(val, str):
        text = val.strip()
        # float() accepts digit separators ("1_000"); the wire format does not
        if not text or "_" in text:
            return 0.0
        try:
            num = float(text)
        except ValueError:
            return 0.0
    else:
        try:
            num = float(val)
        except (TypeError, ValueError):
            return 0.0
    return num if math.isfinite(num) else 0.0


def group_key(val: Any) -> str:
    """Stringify a raw cell the way the JSON wire format would render it."""
    if val is None:
        return "null"
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, (float, np.floating)):
        num = float(val)
        if math.isnan(num):
            return "NaN"
        if math.isinf(num):
            return "Infinity" if num > 0 else "-Infinity"
        return format_js_number(num)
    return str(val)


def format_js_number(num: float) -> str:
    """Render a finite float the way JSON clients print numbers.

    Plain notation for 1e-6 <= |num| < 1e21, otherwise ``1.5e+21`` / ``1e-7``.
    """
    if num == 0:
        return "0"
    if num < 0:
        return "-" + format_js_number(-num)
    _, digits, exponent = Decimal(repr(num)).as_tuple()
    text = "".join(str(d) for d in digits).rstrip("0")
    exponent += len(digits) - len(text)
    k = len(text)
    n = exponent + k    # decimal point position relative to the digits
    if k <= n <= 21:
        return text + "0" * (n - k)
    if 0 < n <= 21:
        return text[:n] + "." + text[n:]
    if -6 < n <= 0:
        return "0." + "0" * (-n) + text
    e = n - 1
    mantissa = text if k == 1 else text[0] + "." + text[1:]
    return f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


def is_temporal_name(name: str) -> bool:
    """Heuristic used by the auto chart: date-ish field names get an area mark."""
    return "date" in name or name.endswith("_at")
