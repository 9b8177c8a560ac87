"""
Chart-family encoder skill.

Each chart family maps to one pure encoder ``(data, fields) -> output``.
Grouped families receive the aggregated records; point-cloud families receive
the raw rows.

Output contract per family:
- bar / line / area / stream / auto / pie / donut / radar / radial / treemap /
  heatmap / geo: the aggregated records unchanged.
- funnel: records sorted by the measure, largest first (stable).
- waterfall: records plus ``min`` (running total before), ``max`` (running
  total after) and ``value``. A negative step has ``min > max``.
- sankey: a ``SankeyGraph`` rooted at a "Total" node, or ``SankeyOverflow``
  when the node count exceeds the limit.
- scatter / bubble: ``{name, x, y, z}`` points, grouped by the dimension
  when one is on a shelf.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Sequence, Union

from core.config import DEFAULT_SANKEY_MAX_NODES
from core.models import (
    ChartType,
    ResolvedFields,
    SankeyGraph,
    SankeyLink,
    SankeyNode,
    SankeyOverflow,
)
from core.utils import coerce_number, is_temporal_name
from skills.aggregate import aggregate_points

Records = List[Dict[str, Any]]
EncodedChart = Union[Records, SankeyGraph, SankeyOverflow]
Encoder = Callable[[Sequence[Mapping[str, Any]], ResolvedFields], EncodedChart]

SANKEY_ROOT = "Total"


# ---------------------------------------------------------------------------
# Per-family encoders
# ---------------------------------------------------------------------------

def encode_passthrough(data: Sequence[Mapping[str, Any]], fields: ResolvedFields) -> Records:
    return [dict(r) for r in data]


def encode_funnel(data: Sequence[Mapping[str, Any]], fields: ResolvedFields) -> Records:
    """Funnel stages, widest first."""
    y_name = fields.y_field.name
    return sorted((dict(r) for r in data), key=lambda r: r[y_name], reverse=True)


def encode_waterfall(data: Sequence[Mapping[str, Any]], fields: ResolvedFields) -> Records:
    """Running-total bars.

    ``min``/``max`` are the running total before and after the step, not the
    low and high ends of the bar.
    """
    y_name = fields.y_field.name
    cumulative = 0.0
    records: Records = []
    for r in data:
        value = coerce_number(r.get(y_name))
        previous = cumulative
        cumulative += value
        records.append({**r, "min": previous, "max": cumulative, "value": value})
    return records


def encode_sankey(
    data: Sequence[Mapping[str, Any]],
    fields: ResolvedFields,
    max_nodes: int = DEFAULT_SANKEY_MAX_NODES,
) -> Union[SankeyGraph, SankeyOverflow]:
    """One link from the root node to each group."""
    y_name = fields.y_field.name
    nodes = [SankeyNode(name=SANKEY_ROOT)]
    links: List[SankeyLink] = []
    for i, r in enumerate(data):
        nodes.append(SankeyNode(name=str(r.get("name"))))
        links.append(SankeyLink(source=0, target=i + 1, value=coerce_number(r.get(y_name)) or 1.0))
    if len(nodes) > max_nodes:
        return SankeyOverflow(node_count=len(nodes), limit=max_nodes)
    return SankeyGraph(nodes=nodes, links=links)


def encode_points(data: Sequence[Mapping[str, Any]], fields: ResolvedFields) -> Records:
    """Scatter/bubble points from raw rows."""
    meas_x, meas_y = fields.meas_x, fields.meas_y
    if fields.dim is not None:
        return aggregate_points(data, fields.dim, meas_x, meas_y)
    return [
        {
            "name": f"Row {i}",
            "x": coerce_number(row.get(meas_x.name)),
            "y": coerce_number(row.get(meas_y.name)),
            "z": 1,
        }
        for i, row in enumerate(data)
    ]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

ENCODERS: Dict[ChartType, Encoder] = {
    ChartType.auto: encode_passthrough,
    ChartType.bar: encode_passthrough,
    ChartType.bar_stacked: encode_passthrough,
    ChartType.bar_horizontal: encode_passthrough,
    ChartType.line: encode_passthrough,
    ChartType.line_step: encode_passthrough,
    ChartType.area: encode_passthrough,
    ChartType.area_stacked: encode_passthrough,
    ChartType.stream: encode_passthrough,
    ChartType.pie: encode_passthrough,
    ChartType.donut: encode_passthrough,
    ChartType.radar: encode_passthrough,
    ChartType.radial: encode_passthrough,
    ChartType.treemap: encode_passthrough,
    ChartType.heatmap: encode_passthrough,
    ChartType.geo: encode_passthrough,
    ChartType.funnel: encode_funnel,
    ChartType.waterfall: encode_waterfall,
    ChartType.sankey: encode_sankey,
    ChartType.scatter: encode_points,
    ChartType.bubble: encode_points,
}


def encode(chart_type: ChartType, data: Sequence[Mapping[str, Any]],
           fields: ResolvedFields, sankey_max_nodes: int = DEFAULT_SANKEY_MAX_NODES) -> EncodedChart:
    if chart_type == ChartType.sankey:
        return encode_sankey(data, fields, max_nodes=sankey_max_nodes)
    return ENCODERS[chart_type](data, fields)


def mark_for(chart_type: ChartType, fields: ResolvedFields) -> str:
    """Which mark the renderer should draw; only ``auto`` is decided here."""
    if chart_type != ChartType.auto:
        return chart_type.value
    if fields.x_field is not None and is_temporal_name(fields.x_field.name):
        return ChartType.area.value
    return ChartType.bar.value
