from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Literal, Mapping, Optional, Tuple

FunnelOrder = Literal["value", "row"]

ALL_OPTION = "All"

POWERBI_FILE_NAME = "AutoBI_PowerBI_Guide.json"
POWERBI_MIME_TYPE = "application/json"
TABLEAU_FILE_NAME = "AutoBI_Tableau_Dashboard.twb"
TABLEAU_MIME_TYPE = "application/xml"

TABLEAU_WORKBOOK_VERSION = "18.1"
TABLEAU_DATASOURCE_SUFFIX = "#csv"
TABLEAU_DASHBOARD_NAME = "AutoBI Dashboard"


@dataclass(frozen=True)
class DashboardSettings:
    pie_top_n: int = 10
    funnel_order: FunnelOrder = "value"
    kpi_trend_window: int = 30
    snippet_rows: int = 10
    max_filterable_columns: int = 3


def _as_int(value: object, default: int, *, lo: int, hi: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    return max(lo, min(hi, out))


def normalize_settings(raw: Optional[Mapping[str, object]] = None) -> DashboardSettings:
    raw = raw or {}
    defaults = DashboardSettings()

    funnel_order = str(raw.get("funnel_order") or defaults.funnel_order).strip().lower()
    if funnel_order not in ("value", "row"):
        funnel_order = defaults.funnel_order

    return DashboardSettings(
        pie_top_n=_as_int(raw.get("pie_top_n", defaults.pie_top_n), defaults.pie_top_n, lo=1, hi=100),
        funnel_order=funnel_order,  # type: ignore[arg-type]
        kpi_trend_window=_as_int(
            raw.get("kpi_trend_window", defaults.kpi_trend_window), defaults.kpi_trend_window, lo=2, hi=1000
        ),
        snippet_rows=_as_int(raw.get("snippet_rows", defaults.snippet_rows), defaults.snippet_rows, lo=0, hi=1000),
        max_filterable_columns=_as_int(
            raw.get("max_filterable_columns", defaults.max_filterable_columns),
            defaults.max_filterable_columns,
            lo=0,
            hi=10,
        ),
    )


# Environment overrides, e.g. AUTOBI_PIE_TOP_N=8
_ENV_KEYS = {
    "AUTOBI_PIE_TOP_N": "pie_top_n",
    "AUTOBI_FUNNEL_ORDER": "funnel_order",
    "AUTOBI_KPI_TREND_WINDOW": "kpi_trend_window",
    "AUTOBI_SNIPPET_ROWS": "snippet_rows",
}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> DashboardSettings:
    environ = os.environ if environ is None else environ
    raw: Dict[str, object] = {key: environ[env] for env, key in _ENV_KEYS.items() if environ.get(env)}
    return normalize_settings(raw)


# ---------------- Presentation templates ----------------
@dataclass(frozen=True)
class DashboardTemplate:
    name: str
    description: str
    primary: str
    secondary: str
    accent: str
    chart_fills: Tuple[str, ...]


TEMPLATES: Tuple[DashboardTemplate, ...] = (
    DashboardTemplate(
        name="Business / Finance",
        description="Modern and professional theme for financial reports and business KPIs.",
        primary="#3b82f6",
        secondary="#64748b",
        accent="#14b8a6",
        chart_fills=("#3b82f6", "#60a5fa", "#93c5fd", "#bfdbfe"),
    ),
    DashboardTemplate(
        name="Sales / Marketing",
        description="Dynamic and vibrant theme to showcase sales performance and marketing reach.",
        primary="#10b981",
        secondary="#f97316",
        accent="#ec4899",
        chart_fills=("#10b981", "#34d399", "#6ee7b7", "#a7f3d0"),
    ),
    DashboardTemplate(
        name="HR / People Analytics",
        description="Clean and approachable theme for human resources data and employee insights.",
        primary="#8b5cf6",
        secondary="#3b82f6",
        accent="#f59e0b",
        chart_fills=("#8b5cf6", "#a78bfa", "#c4b5fd", "#ddd6fe"),
    ),
    DashboardTemplate(
        name="Operations / Manufacturing",
        description="Robust and clear theme for operational metrics and manufacturing data.",
        primary="#ef4444",
        secondary="#4b5563",
        accent="#f97316",
        chart_fills=("#ef4444", "#f87171", "#fca5a5", "#fecaca"),
    ),
    DashboardTemplate(
        name="Academic / Research Analytics",
        description="Scholarly and precise theme for research data and academic findings.",
        primary="#0e7490",
        secondary="#475569",
        accent="#65a30d",
        chart_fills=("#0e7490", "#06b6d4", "#67e8f9", "#cffafe"),
    ),
)


def resolve_template(name: Optional[str]) -> DashboardTemplate:
    wanted = (name or "").strip().lower()
    for template in TEMPLATES:
        if template.name.lower() == wanted:
            return template
    return TEMPLATES[0]
