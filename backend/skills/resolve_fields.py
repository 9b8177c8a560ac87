"""
Field resolver skill.

Picks the concrete shelf fields each chart family needs. Every slot is filled
by walking an ordered list of rules; the first rule that yields a field wins.
Rules that ignore the role on purpose are part of the contract: a measure
dropped on Columns still becomes the x field when no dimension is there.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from core.models import (
    POINT_CLOUD_TYPES,
    ChartType,
    FieldRole,
    ResolvedFields,
    ShelfConfig,
    ShelfField,
)

logger = logging.getLogger("uvicorn.error")

Rule = Tuple[str, Callable[[ShelfConfig, Optional[ShelfField]], Optional[ShelfField]]]


class ShelfConfigError(ValueError):
    """Raised when a shelf configuration violates the basic shape contract."""


def parse_shelves(shelves: Union[ShelfConfig, Mapping[str, Any], None]) -> ShelfConfig:
    """Validate raw shelf input, failing fast with a descriptive message."""
    if isinstance(shelves, ShelfConfig):
        return shelves
    if not isinstance(shelves, Mapping):
        raise ShelfConfigError(
            f"shelf configuration must be a mapping, got {type(shelves).__name__}"
        )
    missing = [key for key in ("columns", "rows") if shelves.get(key) is None]
    if missing:
        raise ShelfConfigError(
            f"shelf configuration is missing required shelves: {', '.join(missing)}"
        )
    try:
        return ShelfConfig.model_validate(dict(shelves))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ShelfConfigError(f"invalid shelf configuration: {problems}") from exc


# ---------------------------------------------------------------------------
# Rule primitives
# ---------------------------------------------------------------------------

def _first(fields: Sequence[ShelfField], role: Optional[FieldRole] = None,
           exclude: Optional[str] = None) -> Optional[ShelfField]:
    for f in fields:
        if role is not None and f.role != role:
            continue
        if exclude is not None and f.name == exclude:
            continue
        return f
    return None


def _apply(rules: List[Rule], shelves: ShelfConfig,
           anchor: Optional[ShelfField] = None) -> Optional[ShelfField]:
    for label, rule in rules:
        found = rule(shelves, anchor)
        if found is not None:
            logger.debug("Field resolved by rule %r: %s", label, found.name)
            return found
    return None


def _other_name(anchor: Optional[ShelfField]) -> Optional[str]:
    return anchor.name if anchor is not None else None


# Point-cloud families (scatter, bubble)
MEAS_X_RULES: List[Rule] = [
    ("measure on columns", lambda s, _: _first(s.columns, FieldRole.measure)),
    ("measure on rows", lambda s, _: _first(s.rows, FieldRole.measure)),
]

MEAS_Y_RULES: List[Rule] = [
    ("other measure on rows",
     lambda s, a: _first(s.rows, FieldRole.measure, exclude=_other_name(a))),
    ("other measure on columns",
     lambda s, a: _first(s.columns, FieldRole.measure, exclude=_other_name(a))),
]

DIM_RULES: List[Rule] = [
    ("dimension on columns", lambda s, _: _first(s.columns, FieldRole.dimension)),
    ("dimension on rows", lambda s, _: _first(s.rows, FieldRole.dimension)),
]

# Every other family
X_FIELD_RULES: List[Rule] = [
    ("dimension on columns", lambda s, _: _first(s.columns, FieldRole.dimension)),
    ("first column field", lambda s, _: _first(s.columns)),
]

Y_FIELD_RULES: List[Rule] = [
    ("measure on rows", lambda s, _: _first(s.rows, FieldRole.measure)),
    ("first row field", lambda s, _: _first(s.rows)),
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def resolve_point_fields(shelves: ShelfConfig) -> ResolvedFields:
    meas_x = _apply(MEAS_X_RULES, shelves)
    meas_y = _apply(MEAS_Y_RULES, shelves, anchor=meas_x)
    dim = _apply(DIM_RULES, shelves)
    return ResolvedFields(meas_x=meas_x, meas_y=meas_y, dim=dim)


def resolve_axis_fields(shelves: ShelfConfig) -> ResolvedFields:
    return ResolvedFields(
        x_field=_apply(X_FIELD_RULES, shelves),
        y_field=_apply(Y_FIELD_RULES, shelves),
    )


def resolve_fields(shelves: ShelfConfig, chart_type: Optional[ChartType] = None) -> ResolvedFields:
    """Resolve the fields ``chart_type`` (default: the shelves' own) needs."""
    family = chart_type or shelves.chart_type
    if family in POINT_CLOUD_TYPES:
        return resolve_point_fields(shelves)
    return resolve_axis_fields(shelves)


def has_required_fields(fields: ResolvedFields, chart_type: ChartType) -> bool:
    if chart_type in POINT_CLOUD_TYPES:
        return fields.meas_x is not None and fields.meas_y is not None
    return fields.x_field is not None and fields.y_field is not None
