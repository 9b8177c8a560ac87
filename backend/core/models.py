"""
Core Pydantic models for the worksheet chart engine.

All domain types live here so every module shares the same vocabulary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Shelves
# ---------------------------------------------------------------------------

class FieldRole(str, Enum):
    dimension = "dimension"
    measure = "measure"


class ShelfField(BaseModel):
    """A data field placed on a shelf.

    The wire format uses ``type`` for the role and ``isCustom`` for computed
    fields; the Python attribute names are accepted as well.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    role: FieldRole = Field(alias="type")
    is_custom: bool = Field(default=False, alias="isCustom")
    formula: Optional[str] = None    # computed fields only; never evaluated

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() == "dim":
            return FieldRole.dimension
        return value


class ChartType(str, Enum):
    auto = "auto"
    bar = "bar"
    bar_stacked = "bar-stacked"
    bar_horizontal = "bar-horizontal"
    line = "line"
    line_step = "line-step"
    area = "area"
    area_stacked = "area-stacked"
    stream = "stream"
    pie = "pie"
    donut = "donut"
    radar = "radar"
    radial = "radial"
    treemap = "treemap"
    funnel = "funnel"
    waterfall = "waterfall"
    heatmap = "heatmap"
    sankey = "sankey"
    scatter = "scatter"
    bubble = "bubble"
    geo = "geo"


# Families that plot raw points instead of aggregated groups
POINT_CLOUD_TYPES = frozenset({ChartType.scatter, ChartType.bubble})


class ColorScheme(str, Enum):
    default = "default"
    warm = "warm"
    cool = "cool"


class ShelfConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    columns: List[ShelfField]
    rows: List[ShelfField]
    chart_type: ChartType = Field(default=ChartType.auto, alias="chartType")
    show_legend: bool = Field(default=True, alias="showLegend")
    show_grid: bool = Field(default=True, alias="showGrid")
    color_scheme: ColorScheme = Field(default=ColorScheme.default, alias="colorScheme")

    @field_validator("chart_type", mode="before")
    @classmethod
    def _default_chart_type(cls, value: Any) -> Any:
        # the workbench sends an empty chart type before the user picks one
        if value is None or value == "":
            return ChartType.auto
        return value


# ---------------------------------------------------------------------------
# Resolution & output
# ---------------------------------------------------------------------------

class ResolvedFields(BaseModel):
    x_field: Optional[ShelfField] = None
    y_field: Optional[ShelfField] = None
    meas_x: Optional[ShelfField] = None
    meas_y: Optional[ShelfField] = None
    dim: Optional[ShelfField] = None


class SankeyNode(BaseModel):
    name: str


class SankeyLink(BaseModel):
    source: int
    target: int
    value: float


class SankeyGraph(BaseModel):
    nodes: List[SankeyNode] = Field(default_factory=list)
    links: List[SankeyLink] = Field(default_factory=list)


class SankeyOverflow(BaseModel):
    """Returned instead of a graph when the sankey would have too many nodes."""

    reason: str = "too_many_nodes"
    node_count: int
    limit: int


class ChartData(BaseModel):
    chart_type: ChartType
    mark: str                                      # what the renderer should draw
    resolved: ResolvedFields = Field(default_factory=ResolvedFields)
    records: List[Dict[str, Any]] = Field(default_factory=list)
    sankey: Optional[SankeyGraph] = None
    too_many_nodes: bool = False
    node_count: int = 0
    empty: bool = True
    show_legend: bool = True
    show_grid: bool = True
    color_scheme: ColorScheme = ColorScheme.default


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class ChartDataRequest(BaseModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    shelves: Dict[str, Any]


class DatasetUpload(BaseModel):
    rows: List[Dict[str, Any]] = Field(default_factory=list)
