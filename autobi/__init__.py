"""AutoBI dashboard core (UI-agnostic).

This package contains:
- field coercion and dataset loading (CSV/XLSX -> pandas)
- the filter engine and the aggregation transforms behind each chart type
- the chart compatibility registry (Altair -> Vega-Lite spec dict)
- dashboard payloads (JSON-serializable) over an explicit session context
- Power BI / Tableau export codecs
"""
