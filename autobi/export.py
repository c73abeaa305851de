"""Export codecs for external BI tools.

- Power BI: a JSON guide (summary, insights, chart suggestions, data snippet)
  the user rebuilds visuals from; not an executable .pbix.
- Tableau: a .twb workbook with one worksheet per chart the mark table covers,
  connected to the original CSV by file name.

Both codecs are pure: they return a finished ``ExportArtifact`` and leave delivery
(HTTP response, browser download) to the caller.
"""

from __future__ import annotations

import json
import math
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from autobi.analysis import AnalysisResult
from autobi.charts import ChartSuggestion, ChartType
from autobi.config import (
    POWERBI_FILE_NAME,
    POWERBI_MIME_TYPE,
    TABLEAU_DASHBOARD_NAME,
    TABLEAU_DATASOURCE_SUFFIX,
    TABLEAU_FILE_NAME,
    TABLEAU_MIME_TYPE,
    TABLEAU_WORKBOOK_VERSION,
)

XML_DECLARATION = "<?xml version='1.0' encoding='utf-8' ?>"
TABLEAU_USER_NAMESPACE = "http://www.tableausoftware.com/xml/user"

# XML 1.0 forbids C0 controls other than tab, LF and CR
_XML_INVALID = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


@dataclass(frozen=True)
class ExportArtifact:
    file_name: str
    mime_type: str
    content: str

    def to_bytes(self) -> bytes:
        return self.content.encode("utf-8")


# ---------------- Power BI ----------------
def _json_safe(value: Any) -> Any:
    if value is None or value is pd.NA:
        return None
    if isinstance(value, (np.integer,)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        out = float(value)
        return None if math.isnan(out) or math.isinf(out) else out
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return value


def data_snippet(df: pd.DataFrame, rows: int = 10) -> List[Dict[str, Any]]:
    head = df.head(max(0, rows))
    return [
        {str(k): _json_safe(v) for k, v in record.items()}
        for record in head.astype(object).to_dict(orient="records")
    ]


def powerbi_guide(
    analysis: AnalysisResult,
    df: pd.DataFrame,
    file_name: str,
    *,
    snippet_rows: int = 10,
) -> Dict[str, Any]:
    return {
        "dataSource": f"Connect to your original CSV file: {file_name}",
        "analysisSummary": analysis.summary,
        "insights": list(analysis.insights),
        "chartSuggestions": [c.to_dict() for c in analysis.chart_suggestions],
        "dataSnippet": data_snippet(df, snippet_rows),
    }


def export_powerbi(
    analysis: AnalysisResult,
    df: pd.DataFrame,
    file_name: str,
    *,
    snippet_rows: int = 10,
) -> ExportArtifact:
    guide = powerbi_guide(analysis, df, file_name, snippet_rows=snippet_rows)
    content = json.dumps(guide, indent=2, ensure_ascii=False)
    return ExportArtifact(file_name=POWERBI_FILE_NAME, mime_type=POWERBI_MIME_TYPE, content=content)


# ---------------- Tableau ----------------
def xml_text(value: str) -> str:
    return _XML_INVALID.sub("", value)


def datasource_name(file_name: str) -> str:
    """Tableau's federated datasource name for a CSV: the name up to its first dot, plus ``#csv``."""
    return f"federated.{xml_text(file_name).split('.')[0]}{TABLEAU_DATASOURCE_SUFFIX}"


def field_ref(name: Optional[str]) -> str:
    """Bracketed Tableau field reference; a literal ``]`` is doubled."""
    if not name:
        return ""
    return "[" + xml_text(name).replace("]", "]]") + "]"


def sum_ref(datasource: str, name: Optional[str]) -> str:
    return f"[{datasource}].[sum:{field_ref(name)}]"


def _mark_spec(chart: ChartSuggestion, datasource: str):
    """(mark class, cols ref, rows ref, encodings) or None when the chart has no worksheet."""
    ct = chart.chart_type
    rows = sum_ref(datasource, chart.y_axis)
    if ct in (ChartType.bar, ChartType.grouped_bar, ChartType.stacked_bar):
        encodings = {"color": field_ref(chart.grouping_column)} if chart.grouping_column else {}
        return "Bar", field_ref(chart.x_axis), rows, encodings
    if ct == ChartType.line:
        return "Line", field_ref(chart.x_axis), rows, {}
    if ct == ChartType.area:
        return "Area", field_ref(chart.x_axis), rows, {}
    if ct == ChartType.scatter:
        return "Circle", sum_ref(datasource, chart.grouping_column or chart.x_axis), rows, {}
    if ct in (ChartType.pie, ChartType.donut):
        return "Pie", "", rows, {"color": field_ref(chart.x_axis), "angle": rows}
    return None


def tableau_worksheet(chart: ChartSuggestion, file_name: str) -> Optional[ET.Element]:
    datasource = datasource_name(file_name)
    spec = _mark_spec(chart, datasource)
    if spec is None:
        return None
    mark_class, cols, rows, encodings = spec

    worksheet = ET.Element("worksheet", {"name": xml_text(chart.title)})
    table = ET.SubElement(worksheet, "table")
    view = ET.SubElement(table, "view")
    datasources = ET.SubElement(view, "datasources")
    ET.SubElement(datasources, "datasource", {"caption": xml_text(file_name), "name": datasource})
    ET.SubElement(view, "shelf-sorts")
    ET.SubElement(view, "aggregation", {"value": "true"})
    ET.SubElement(table, "style")

    pane = ET.SubElement(ET.SubElement(table, "panes"), "pane")
    ET.SubElement(pane, "mark", {"class": mark_class})
    if encodings:
        enc = ET.SubElement(pane, "encodings")
        for channel, column in encodings.items():
            ET.SubElement(enc, channel, {"column": column})

    rows_el = ET.SubElement(table, "rows")
    if rows:
        ET.SubElement(rows_el, "row").text = rows
    cols_el = ET.SubElement(table, "cols")
    if cols:
        ET.SubElement(cols_el, "column").text = cols
    return worksheet


def tableau_workbook(analysis: AnalysisResult, file_name: str) -> ET.Element:
    caption = xml_text(file_name)
    workbook = ET.Element(
        "workbook",
        {"version": TABLEAU_WORKBOOK_VERSION, "xmlns:user": TABLEAU_USER_NAMESPACE},
    )
    ET.SubElement(workbook, "preferences")

    datasources = ET.SubElement(workbook, "datasources")
    datasource = ET.SubElement(
        datasources,
        "datasource",
        {
            "caption": caption,
            "inline": "true",
            "name": datasource_name(file_name),
            "version": TABLEAU_WORKBOOK_VERSION,
        },
    )
    ET.SubElement(
        datasource,
        "connection",
        {"class": "textscan", "directory": ".", "filename": caption, "password": "", "server": ""},
    )

    worksheets = ET.SubElement(workbook, "worksheets")
    for chart in analysis.chart_suggestions:
        worksheet = tableau_worksheet(chart, file_name)
        if worksheet is not None:
            worksheets.append(worksheet)

    windows = ET.SubElement(workbook, "windows", {"source-height": "30"})
    window = ET.SubElement(windows, "window", {"class": "dashboard", "name": TABLEAU_DASHBOARD_NAME})
    ET.SubElement(window, "viewpoints")
    return workbook


def export_tableau(analysis: AnalysisResult, file_name: str) -> ExportArtifact:
    workbook = tableau_workbook(analysis, file_name)
    ET.indent(workbook, space="  ")
    body = ET.tostring(workbook, encoding="unicode")
    content = f"{XML_DECLARATION}\n{body}\n"
    return ExportArtifact(file_name=TABLEAU_FILE_NAME, mime_type=TABLEAU_MIME_TYPE, content=content)
