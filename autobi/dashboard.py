from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from autobi.aggregate import funnel_stages, pivot, pivot_keys, ranked_bins
from autobi.charts import (
    ChartSuggestion,
    ChartType,
    build_chart,
    chart_type_label,
    missing_field_message,
    to_vega_spec,
)
from autobi.config import DashboardSettings, DashboardTemplate, resolve_template
from autobi.fields import label_column, numeric_column
from autobi.kpi import compute_kpi
from autobi.session import DashboardSession, prepare_context

NO_DATA_MESSAGE = "No data for this selection."


def _row_labels(df: pd.DataFrame, field: Optional[str]) -> pd.Series:
    if field:
        return label_column(df, field)
    return pd.Series([str(i + 1) for i in range(len(df))], index=df.index, dtype=object)


def _series_frame(chart: ChartSuggestion, chart_type: ChartType, df: pd.DataFrame, settings: DashboardSettings):
    """(records for the payload, long frame for the renderer, series keys)."""
    x_field, y_field, group_field = chart.x_axis, chart.y_axis, chart.grouping_column

    if chart_type in (ChartType.line, ChartType.bar, ChartType.area):
        frame = pd.DataFrame({"label": _row_labels(df, x_field), "value": numeric_column(df, y_field)})
        records = [{(x_field or "index"): r["label"], y_field: r["value"]} for r in frame.to_dict(orient="records")]
        return records, frame, [y_field]

    if chart_type == ChartType.scatter:
        x_source = group_field or x_field
        frame = pd.DataFrame({"x": numeric_column(df, x_source), "value": numeric_column(df, y_field)})
        records = [{x_source: r["x"], y_field: r["value"]} for r in frame.to_dict(orient="records")]
        return records, frame, [y_field]

    if chart_type in (ChartType.grouped_bar, ChartType.stacked_bar):
        records = pivot(df, x_field, group_field, y_field)
        keys = pivot_keys(df, group_field)
        long_rows = [
            {"category": rec[x_field], "group": key, "value": float(rec.get(key, 0.0))}
            for rec in records
            for key in keys
        ]
        return records, pd.DataFrame(long_rows, columns=["category", "group", "value"]), keys

    if chart_type in (ChartType.pie, ChartType.donut):
        records = ranked_bins(df, x_field, y_field, limit=settings.pie_top_n)
        return records, pd.DataFrame(records, columns=["name", "value"]), [y_field]

    if chart_type == ChartType.funnel:
        records = funnel_stages(df, x_field, y_field, order=settings.funnel_order)
        return records, pd.DataFrame(records, columns=["name", "value"]), [y_field]

    return [], pd.DataFrame(), []


def compute_chart(
    chart: ChartSuggestion,
    chart_type: ChartType,
    df: pd.DataFrame,
    *,
    settings: Optional[DashboardSettings] = None,
    template: Optional[DashboardTemplate] = None,
    index: int = 0,
) -> Dict[str, Any]:
    settings = settings or DashboardSettings()
    payload: Dict[str, Any] = {
        "index": index,
        "title": chart.title,
        "chart_type": chart_type.value,
        "label": chart_type_label(chart_type),
        "suggested_chart_type": chart.chart_type.value,
        "compatible_chart_types": [c.value for c in chart.compatible_chart_types],
        "fields": {"x_axis": chart.x_axis, "y_axis": chart.y_axis, "grouping_column": chart.grouping_column},
        "status": "ok",
        "message": None,
        "data": [],
        "series": [],
        "kpi": None,
        "spec": None,
    }

    if chart_type == ChartType.kpi:
        summary = compute_kpi(df, chart.y_axis, window=settings.kpi_trend_window)
        payload["kpi"] = asdict(summary)
        payload["data"] = [{"index": i, "value": v} for i, v in enumerate(summary.trend)]
        if summary.trend:
            frame = pd.DataFrame(payload["data"], columns=["index", "value"])
            payload["spec"] = to_vega_spec(build_chart(chart_type, frame, y_title=chart.y_axis, template=template))
        return payload

    message = missing_field_message(chart, chart_type)
    if message:
        payload.update(status="placeholder", message=message)
        return payload
    if df.empty:
        payload.update(status="empty", message=NO_DATA_MESSAGE)
        return payload

    records, frame, series = _series_frame(chart, chart_type, df, settings)
    payload["data"] = records
    payload["series"] = series
    if frame.empty:
        payload.update(status="empty", message=NO_DATA_MESSAGE)
        return payload

    x_title = (chart.grouping_column or chart.x_axis) if chart_type == ChartType.scatter else chart.x_axis
    rendered = build_chart(
        chart_type,
        frame,
        x_title=x_title,
        y_title=chart.y_axis,
        color_title=chart.grouping_column,
        template=template,
    )
    if rendered is None:
        payload.update(status="unsupported", message="Unsupported chart type.")
        return payload
    payload["spec"] = to_vega_spec(rendered)
    return payload


def compute_dashboard(session: DashboardSession, *, template_name: Optional[str] = None) -> Dict[str, Any]:
    ctx = prepare_context(session)
    analysis = session.analysis
    template = resolve_template(template_name or analysis.suggested_template)
    filtered: pd.DataFrame = ctx["filtered"]

    charts: List[Dict[str, Any]] = [
        compute_chart(chart, session.chart_types[i], filtered, settings=session.settings, template=template, index=i)
        for i, chart in enumerate(session.charts)
    ]
    return {
        "file_name": session.file_name,
        "data_type": analysis.data_type,
        "title": f"{analysis.data_type} Dashboard",
        "template": asdict(template),
        "summary": analysis.summary,
        "insights": list(analysis.insights),
        "filters": {"options": ctx["filter_options"], "active": ctx["active_filters"]},
        "row_counts": {"total": ctx["row_count"], "filtered": ctx["filtered_row_count"]},
        "charts": charts,
    }
