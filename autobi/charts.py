from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

import altair as alt
import pandas as pd

from autobi.config import TEMPLATES, DashboardTemplate

alt.data_transformers.disable_max_rows()

logger = logging.getLogger(__name__)


class ChartType(str, Enum):
    line = "line"
    bar = "bar"
    area = "area"
    scatter = "scatter"
    pie = "pie"
    donut = "donut"
    grouped_bar = "grouped-bar"
    stacked_bar = "stacked-bar"
    funnel = "funnel"
    kpi = "kpi"


# Closed set: switching only within a group keeps the axis semantics intact.
COMPATIBLE_CHART_TYPES: Dict[ChartType, Tuple[ChartType, ...]] = {
    ChartType.line: (ChartType.line, ChartType.bar, ChartType.area, ChartType.scatter),
    ChartType.bar: (ChartType.bar, ChartType.line, ChartType.area),
    ChartType.area: (ChartType.area, ChartType.line, ChartType.bar),
    ChartType.grouped_bar: (ChartType.grouped_bar, ChartType.stacked_bar),
    ChartType.stacked_bar: (ChartType.stacked_bar, ChartType.grouped_bar),
    ChartType.pie: (ChartType.pie, ChartType.donut),
    ChartType.donut: (ChartType.donut, ChartType.pie),
    ChartType.scatter: (ChartType.scatter, ChartType.line),
    ChartType.kpi: (ChartType.kpi,),
    ChartType.funnel: (ChartType.funnel,),
}


def parse_chart_type(value: object) -> Optional[ChartType]:
    if isinstance(value, ChartType):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower().replace("_", "-").replace(" ", "-")
    try:
        return ChartType(key)
    except ValueError:
        return None


def chart_type_label(chart_type: ChartType) -> str:
    return chart_type.value.replace("-", " ").title()


def compatible_chart_types(
    chart_type: ChartType,
    proposed: Optional[Iterable[object]] = None,
) -> Tuple[ChartType, ...]:
    """Validate a proposed switch list against the registry.

    Unknown names and geometries outside the registry group are dropped and
    ``chart_type`` always leads; an empty proposal falls back to the registry default.
    """
    default = COMPATIBLE_CHART_TYPES[chart_type]
    proposed = list(proposed or [])
    if not proposed:
        return default

    out = [chart_type]
    for raw in proposed:
        parsed = parse_chart_type(raw)
        if parsed is None or parsed not in default:
            logger.debug("dropping incompatible chart type %r for %s", raw, chart_type.value)
            continue
        if parsed not in out:
            out.append(parsed)
    return tuple(out)


def _as_field(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ChartSuggestion:
    title: str
    chart_type: ChartType
    y_axis: str
    x_axis: Optional[str] = None
    grouping_column: Optional[str] = None
    compatible_chart_types: Tuple[ChartType, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "compatible_chart_types",
            compatible_chart_types(self.chart_type, self.compatible_chart_types),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chartType": self.chart_type.value,
            "compatibleChartTypes": [c.value for c in self.compatible_chart_types],
            "title": self.title,
            "x_axis": self.x_axis,
            "y_axis": self.y_axis,
            "grouping_column": self.grouping_column,
        }


def normalize_chart_suggestion(raw: Mapping[str, Any]) -> Optional[ChartSuggestion]:
    chart_type = parse_chart_type(raw.get("chartType"))
    if chart_type is None:
        logger.warning("rejecting chart suggestion with unknown chart type %r", raw.get("chartType"))
        return None
    y_axis = _as_field(raw.get("y_axis"))
    if y_axis is None:
        logger.warning("rejecting %s chart suggestion without a value field", chart_type.value)
        return None

    proposed = raw.get("compatibleChartTypes")
    if not isinstance(proposed, (list, tuple)):
        proposed = None
    return ChartSuggestion(
        title=str(raw.get("title") or chart_type_label(chart_type)),
        chart_type=chart_type,
        y_axis=y_axis,
        x_axis=_as_field(raw.get("x_axis")),
        grouping_column=_as_field(raw.get("grouping_column")),
        compatible_chart_types=tuple(proposed or ()),
    )


def can_switch(chart: ChartSuggestion, target: object) -> bool:
    return parse_chart_type(target) in chart.compatible_chart_types


_FIELD_LABELS = {
    "x_axis": "a category field (x_axis)",
    "grouping_column": "a grouping column",
}

_REQUIRED_FIELDS: Dict[ChartType, Tuple[str, ...]] = {
    ChartType.grouped_bar: ("x_axis", "grouping_column"),
    ChartType.stacked_bar: ("x_axis", "grouping_column"),
    ChartType.pie: ("x_axis",),
    ChartType.donut: ("x_axis",),
    ChartType.funnel: ("x_axis",),
}


def missing_field_message(chart: ChartSuggestion, chart_type: ChartType) -> Optional[str]:
    """Placeholder text when the chart's fields cannot drive ``chart_type``; None when they can."""
    label = chart_type_label(chart_type)
    if chart_type == ChartType.scatter:
        if chart.grouping_column or chart.x_axis:
            return None
        return f"{label} chart requires a numeric x field (grouping_column or x_axis)."
    required = _REQUIRED_FIELDS.get(chart_type, ())
    if all(getattr(chart, name) for name in required):
        return None
    needs = " and ".join(_FIELD_LABELS[name] for name in required)
    return f"{label} chart requires {needs}."


# ---------------- Vega-Lite rendering ----------------
def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def build_chart(
    chart_type: ChartType,
    frame: pd.DataFrame,
    *,
    x_title: Optional[str] = None,
    y_title: Optional[str] = None,
    color_title: Optional[str] = None,
    template: Optional[DashboardTemplate] = None,
    height: int = 260,
) -> Optional[alt.Chart]:
    """Altair chart over a frame already shaped by the aggregation layer.

    Expected columns: ``label``/``value`` (line, bar, area), ``x``/``value`` (scatter),
    ``category``/``group``/``value`` (grouped/stacked), ``name``/``value`` (pie, donut,
    funnel), ``index``/``value`` (kpi sparkline).
    """
    template = template or TEMPLATES[0]
    fills = list(template.chart_fills)
    primary = template.primary
    base = alt.Chart(frame)
    value_y = alt.Y("value:Q", title=y_title, axis=alt.Axis(gridDash=[3, 3], domain=False, ticks=False))

    if chart_type in (ChartType.line, ChartType.bar, ChartType.area):
        x = alt.X("label:N", sort=None, title=x_title, axis=alt.Axis(grid=False))
        tooltip = [alt.Tooltip("label:N", title=x_title), alt.Tooltip("value:Q", title=y_title, format=",")]
        if chart_type == ChartType.line:
            mark = base.mark_line(point=True, color=primary)
        elif chart_type == ChartType.area:
            mark = base.mark_area(line={"color": primary}, color=primary, opacity=0.5)
        else:
            mark = base.mark_bar(color=primary, cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        return mark.encode(x=x, y=value_y, tooltip=tooltip).properties(height=height)

    if chart_type == ChartType.scatter:
        return (
            base.mark_circle(size=60, color=primary)
            .encode(
                x=alt.X("x:Q", title=x_title),
                y=value_y,
                tooltip=[alt.Tooltip("x:Q", title=x_title), alt.Tooltip("value:Q", title=y_title)],
            )
            .properties(height=height)
        )

    if chart_type in (ChartType.grouped_bar, ChartType.stacked_bar):
        color = alt.Color("group:N", title=color_title, scale=alt.Scale(range=fills))
        encodings: Dict[str, Any] = {
            "x": alt.X("category:N", sort=None, title=x_title, axis=alt.Axis(grid=False)),
            "y": value_y,
            "color": color,
            "tooltip": [
                alt.Tooltip("category:N", title=x_title),
                alt.Tooltip("group:N", title=color_title),
                alt.Tooltip("value:Q", title=y_title, format=","),
            ],
        }
        if chart_type == ChartType.grouped_bar:
            encodings["xOffset"] = alt.XOffset("group:N")
        return base.mark_bar(cornerRadiusTopLeft=4, cornerRadiusTopRight=4).encode(**encodings).properties(height=height)

    if chart_type in (ChartType.pie, ChartType.donut):
        inner = 60 if chart_type == ChartType.donut else 0
        return (
            base.mark_arc(innerRadius=inner, outerRadius=90)
            .encode(
                theta=alt.Theta("value:Q", stack=True),
                color=alt.Color("name:N", sort=None, title=x_title, scale=alt.Scale(range=fills)),
                order=alt.Order("value:Q", sort="descending"),
                tooltip=[alt.Tooltip("name:N", title=x_title), alt.Tooltip("value:Q", title=y_title, format=",")],
            )
            .properties(height=height)
        )

    if chart_type == ChartType.funnel:
        return (
            base.mark_bar()
            .encode(
                y=alt.Y("name:N", sort=None, title=x_title),
                x=alt.X("value:Q", title=y_title),
                color=alt.Color("name:N", sort=None, legend=None, scale=alt.Scale(range=fills)),
                tooltip=[alt.Tooltip("name:N", title=x_title), alt.Tooltip("value:Q", title=y_title, format=",")],
            )
            .properties(height=height)
        )

    if chart_type == ChartType.kpi:
        return (
            base.mark_area(line={"color": primary}, color=primary, opacity=0.4)
            .encode(x=alt.X("index:Q", axis=None), y=alt.Y("value:Q", axis=None))
            .properties(height=height // 3)
        )

    return None


def registry_payload(chart_types: Sequence[ChartType] = tuple(ChartType)) -> Dict[str, Any]:
    return {ct.value: [c.value for c in COMPATIBLE_CHART_TYPES[ct]] for ct in chart_types}
