import html
import json
from contextlib import contextmanager
from typing import Dict, Optional

import streamlit as st

from autobi.analysis import normalize_analysis
from autobi.charts import chart_type_label, parse_chart_type
from autobi.config import ALL_OPTION, TEMPLATES, load_settings, resolve_template
from autobi.dashboard import compute_dashboard
from autobi.data import read_dataset
from autobi.export import export_powerbi, export_tableau
from autobi.session import DashboardSession, create_session, filtered_view, set_filters, switch_chart_type

SESSION_KEY = "autobi_session"


# ---------- UI / layout helpers ----------
def inject_base_styles(primary: str):
    st.markdown(
        f"""
        <style>
        .app-top-bar {{padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}}
        .app-top-bar .page-title {{font-size: 1.6rem;font-weight: 700;color: {primary};}}
        .card {{border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}}
        .card-title {{font-weight: 600;font-size: 1.0rem;color: #111827;}}
        .chip-row {{display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}}
        .chip {{background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}}
        .kpi-value {{font-size: 2.6rem;font-weight: 700;color: {primary};}}
        </style>
        """,
        unsafe_allow_html=True,
    )


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{html.escape(title)}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(active: Dict[str, str]) -> str:
    chips = [html.escape(f"{col}: {value}") for col, value in active.items() if value != ALL_OPTION] or ["Filters: All"]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def _store(session: DashboardSession):
    st.session_state[SESSION_KEY] = session


def _load_session(data_file, analysis_file) -> Optional[DashboardSession]:
    try:
        df = read_dataset(data_file.getvalue(), data_file.name)
    except Exception as exc:
        st.error(f"Could not read {data_file.name}: {exc}")
        return None
    try:
        analysis = normalize_analysis(json.loads(analysis_file.getvalue()))
    except (ValueError, json.JSONDecodeError) as exc:
        st.error(f"Analysis file is not a complete analysis result: {exc}")
        return None
    return create_session(df, analysis, data_file.name, load_settings())


# ---------- UI setup ----------
st.set_page_config(page_title="AutoBI Dashboard", layout="wide")

with st.sidebar:
    st.markdown("### Data")
    data_file = st.file_uploader("Dataset (CSV or Excel)", type=["csv", "xlsx", "xls"])
    analysis_file = st.file_uploader("Analysis (JSON)", type=["json"])
    if data_file is not None and analysis_file is not None and st.button("Build dashboard"):
        loaded = _load_session(data_file, analysis_file)
        if loaded is not None:
            _store(loaded)

session: Optional[DashboardSession] = st.session_state.get(SESSION_KEY)
if session is None:
    st.title("AutoBI")
    st.caption("Upload a dataset and its analysis to build a dashboard.")
    st.stop()

template_names = [t.name for t in TEMPLATES]
default_template = resolve_template(session.analysis.suggested_template).name

# ----- Sidebar: template + filters -----
with st.sidebar:
    st.markdown("---")
    template_name = st.selectbox("Template", template_names, index=template_names.index(default_template))
    if session.filter_options:
        st.markdown("### Filters")
        selections = {}
        for col, options in session.filter_options.items():
            current = session.active_filters.get(col, ALL_OPTION)
            selections[col] = st.selectbox(col, options, index=options.index(current), key=f"filter-{col}")
        if selections != {c: session.active_filters.get(c, ALL_OPTION) for c in selections}:
            session = set_filters(session, selections)
            _store(session)

template = resolve_template(template_name)
inject_base_styles(template.primary)
payload = compute_dashboard(session, template_name=template.name)

# ----- Header + exports -----
top = st.container()
c1, c2, c3 = top.columns([6, 2, 2])
with c1:
    st.markdown(
        f"<div class='app-top-bar'><div class='page-title'>{html.escape(payload['title'])}</div></div>",
        unsafe_allow_html=True,
    )
with c2:
    pbi = export_powerbi(
        session.analysis, filtered_view(session), session.file_name, snippet_rows=session.settings.snippet_rows
    )
    st.download_button("Export for Power BI", data=pbi.to_bytes(), file_name=pbi.file_name, mime=pbi.mime_type)
with c3:
    twb = export_tableau(session.analysis, session.file_name)
    st.download_button("Export for Tableau", data=twb.to_bytes(), file_name=twb.file_name, mime=twb.mime_type)
st.markdown(f"<div class='chip-row'>{format_filter_summary(session.active_filters)}</div>", unsafe_allow_html=True)
st.caption(f"{payload['row_counts']['filtered']:,} of {payload['row_counts']['total']:,} rows")

with card("Executive summary"):
    st.write(payload["summary"])
    for insight in payload["insights"]:
        st.markdown(f"- {insight}")

# ----- Charts -----
cols = st.columns(2)
for chart in payload["charts"]:
    with cols[chart["index"] % 2]:
        with card(chart["title"]):
            options = chart["compatible_chart_types"]
            if len(options) > 1:
                choice = st.selectbox(
                    "Chart type",
                    options,
                    index=options.index(chart["chart_type"]),
                    format_func=lambda v: chart_type_label(parse_chart_type(v)),
                    key=f"chart-type-{chart['index']}",
                )
                if choice != chart["chart_type"]:
                    _store(switch_chart_type(session, chart["index"], choice))
                    st.rerun()

            if chart["kpi"] is not None:
                kpi = chart["kpi"]
                st.markdown(f"<div class='kpi-value'>{kpi['total']:,.0f}</div>", unsafe_allow_html=True)
                st.caption(f"{kpi['delta_pct']:+.1f}% over the last {len(kpi['trend'])} rows")
                if chart["spec"]:
                    st.vega_lite_chart(chart["spec"], use_container_width=True)
            elif chart["status"] != "ok":
                st.info(chart["message"])
            else:
                st.vega_lite_chart(chart["spec"], use_container_width=True)

with st.expander("Filtered data", expanded=False):
    st.dataframe(filtered_view(session).head(200), use_container_width=True)
