"""Validated view of the analysis oracle's output.

The oracle returns free-form JSON. ``normalize_analysis`` is the only way into
the core: it either yields a complete ``AnalysisResult`` or raises ``ValueError``,
so downstream code never sees a partial result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from autobi.charts import ChartSuggestion, normalize_chart_suggestion

logger = logging.getLogger(__name__)

MAX_FILTERABLE_COLUMNS = 3

_REQUIRED_KEYS = ("dataType", "suggestedTemplate", "summary", "insights", "chartSuggestions")


@dataclass(frozen=True)
class AnalysisResult:
    data_type: str
    suggested_template: str
    summary: str
    insights: Tuple[str, ...] = field(default_factory=tuple)
    chart_suggestions: Tuple[ChartSuggestion, ...] = field(default_factory=tuple)
    filterable_columns: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataType": self.data_type,
            "suggestedTemplate": self.suggested_template,
            "summary": self.summary,
            "insights": list(self.insights),
            "chartSuggestions": [c.to_dict() for c in self.chart_suggestions],
            "filterableColumns": list(self.filterable_columns),
        }


def normalize_analysis(raw: Mapping[str, Any]) -> AnalysisResult:
    if not isinstance(raw, Mapping):
        raise ValueError("analysis must be a JSON object")
    missing = [k for k in _REQUIRED_KEYS if raw.get(k) is None]
    if missing:
        raise ValueError(f"analysis is missing required keys: {', '.join(missing)}")

    insights = raw["insights"]
    suggestions = raw["chartSuggestions"]
    if not isinstance(insights, (list, tuple)):
        raise ValueError("analysis.insights must be a list")
    if not isinstance(suggestions, (list, tuple)):
        raise ValueError("analysis.chartSuggestions must be a list")

    charts = []
    for item in suggestions:
        if not isinstance(item, Mapping):
            logger.warning("rejecting non-object chart suggestion %r", item)
            continue
        chart = normalize_chart_suggestion(item)
        if chart is not None:
            charts.append(chart)

    filterable = []
    for col in raw.get("filterableColumns") or []:
        if isinstance(col, str) and col.strip() and col not in filterable:
            filterable.append(col)

    return AnalysisResult(
        data_type=str(raw["dataType"]),
        suggested_template=str(raw["suggestedTemplate"]),
        summary=str(raw["summary"]),
        insights=tuple(str(i) for i in insights),
        chart_suggestions=tuple(charts),
        filterable_columns=tuple(filterable[:MAX_FILTERABLE_COLUMNS]),
    )
