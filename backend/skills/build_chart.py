"""
Chart builder skill.

Takes raw rows + a shelf configuration → ChartData with chart-ready records.
The renderer simply draws what it receives — no computation needed there.

Pipeline: resolve fields → aggregate (grouped families only) → encode.
Misconfiguration never raises: missing fields or rows give an empty result and
an oversized sankey gives ``too_many_nodes``. Only a malformed configuration
(not a mapping, no ``columns``/``rows``) raises ``ShelfConfigError``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from core.config import Settings, get_settings
from core.models import (
    POINT_CLOUD_TYPES,
    ChartData,
    SankeyGraph,
    SankeyOverflow,
    ShelfConfig,
)
from core.utils import RawRows, to_records
from skills.aggregate import aggregate
from skills.encode import encode, mark_for
from skills.resolve_fields import has_required_fields, parse_shelves, resolve_fields

logger = logging.getLogger("uvicorn.error")


def build_chart_data(
    rows: RawRows,
    shelves: Union[ShelfConfig, Mapping[str, Any]],
    settings: Optional[Settings] = None,
) -> ChartData:
    """Build the chart-ready payload for the shelves' chart type."""
    config = parse_shelves(shelves)
    settings = settings or get_settings()
    chart_type = config.chart_type
    records = to_records(rows)

    fields = resolve_fields(config, chart_type)
    result = ChartData(
        chart_type=chart_type,
        mark=mark_for(chart_type, fields),
        resolved=fields,
        show_legend=config.show_legend,
        show_grid=config.show_grid,
        color_scheme=config.color_scheme,
    )

    if not records or not has_required_fields(fields, chart_type):
        logger.warning(
            "Chart data empty: chart=%s rows=%d columns=%s rows_shelf=%s",
            chart_type.value, len(records),
            [f.name for f in config.columns], [f.name for f in config.rows],
        )
        return result

    if chart_type in POINT_CLOUD_TYPES:
        stage = records
    else:
        stage = aggregate(records, fields.x_field, fields.y_field, fill=settings.default_fill)
        if not stage:
            return result

    encoded = encode(chart_type, stage, fields, sankey_max_nodes=settings.sankey_max_nodes)

    if isinstance(encoded, SankeyOverflow):
        logger.warning(
            "Sankey skipped: %d nodes exceeds limit of %d",
            encoded.node_count, encoded.limit,
        )
        result.too_many_nodes = True
        result.node_count = encoded.node_count
        result.empty = False
        return result

    if isinstance(encoded, SankeyGraph):
        result.sankey = encoded
        result.node_count = len(encoded.nodes)
        result.records = stage
    else:
        result.records = encoded

    result.empty = not result.records
    logger.info(
        "Chart built: chart=%s mark=%s records=%d keys=%s",
        chart_type.value, result.mark, len(result.records),
        list(result.records[0].keys()) if result.records else [],
    )
    return result
