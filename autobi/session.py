from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

import pandas as pd

from autobi.analysis import AnalysisResult
from autobi.charts import ChartSuggestion, ChartType, can_switch, parse_chart_type
from autobi.config import ALL_OPTION, DashboardSettings
from autobi.filters import FilterOptions, FilterSpec, apply_filters, build_filter_options, normalize_filter_spec

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class DashboardSession:
    """Everything one interactive dashboard owns.

    The dataset and analysis are fixed at upload; ``active_filters`` and
    ``chart_types`` change through ``set_filter`` / ``switch_chart_type``, which
    return a new session rather than mutating this one.
    """

    file_name: str
    dataset: pd.DataFrame
    analysis: AnalysisResult
    settings: DashboardSettings = field(default_factory=DashboardSettings)
    filter_options: FilterOptions = field(default_factory=dict)
    active_filters: FilterSpec = field(default_factory=dict)
    chart_types: Tuple[ChartType, ...] = field(default_factory=tuple)

    @property
    def charts(self) -> Tuple[ChartSuggestion, ...]:
        return self.analysis.chart_suggestions


def create_session(
    dataset: pd.DataFrame,
    analysis: AnalysisResult,
    file_name: str,
    settings: Optional[DashboardSettings] = None,
) -> DashboardSession:
    settings = settings or DashboardSettings()
    options = build_filter_options(
        dataset, analysis.filterable_columns, max_columns=settings.max_filterable_columns
    )
    return DashboardSession(
        file_name=file_name,
        dataset=dataset,
        analysis=analysis,
        settings=settings,
        filter_options=options,
        active_filters={},
        chart_types=tuple(c.chart_type for c in analysis.chart_suggestions),
    )


def set_filter(session: DashboardSession, column: str, value: Optional[str]) -> DashboardSession:
    return set_filters(session, {column: value if value is not None else ALL_OPTION})


def set_filters(session: DashboardSession, raw: Mapping[str, Any]) -> DashboardSession:
    updates = normalize_filter_spec(raw, session.filter_options)
    if not updates:
        return session
    return replace(session, active_filters={**session.active_filters, **updates})


def reset_filters(session: DashboardSession) -> DashboardSession:
    return replace(session, active_filters={})


def switch_chart_type(session: DashboardSession, index: int, chart_type: object) -> DashboardSession:
    """Switch one chart's geometry; targets outside its compatible list are refused."""
    if index < 0 or index >= len(session.chart_types):
        raise IndexError(f"no chart at index {index}")
    chart = session.charts[index]
    target = parse_chart_type(chart_type)
    if target is None or not can_switch(chart, target):
        logger.warning("refusing switch of %r to %r", chart.title, chart_type)
        return session
    chart_types = list(session.chart_types)
    chart_types[index] = target
    return replace(session, chart_types=tuple(chart_types))


def filtered_view(session: DashboardSession) -> pd.DataFrame:
    return apply_filters(session.dataset, session.active_filters, filterable=session.filter_options.keys())


def prepare_context(session: DashboardSession) -> Dict[str, Any]:
    filtered = filtered_view(session)
    return {
        "dataset": session.dataset,
        "filtered": filtered,
        "row_count": int(len(session.dataset)),
        "filtered_row_count": int(len(filtered)),
        "filter_options": session.filter_options,
        "active_filters": dict(session.active_filters),
    }
