from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AnalysisModel(BaseModel):
    dataType: str
    suggestedTemplate: str
    summary: str
    insights: List[str]
    chartSuggestions: List[Dict[str, Any]]
    filterableColumns: Optional[List[str]] = None


class SettingsModel(BaseModel):
    pie_top_n: int = 10
    funnel_order: str = "value"
    kpi_trend_window: int = 30
    snippet_rows: int = 10


class CreateSessionRequest(BaseModel):
    file_name: str
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    analysis: AnalysisModel
    settings: Optional[SettingsModel] = None


class FiltersRequest(BaseModel):
    filters: Dict[str, Optional[str]] = Field(default_factory=dict)


class ChartTypeRequest(BaseModel):
    chart_type: str
