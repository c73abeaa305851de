import copy

import pandas as pd
import pytest

from autobi.analysis import normalize_analysis
from autobi.data import dataset_from_records
from autobi.session import create_session

SALES_ROWS = [
    {"month": "Jan", "region": "East", "product": "Widget", "sales": 100, "units": 10},
    {"month": "Jan", "region": "West", "product": "Gadget", "sales": 150, "units": 12},
    {"month": "Feb", "region": "East", "product": "Gadget", "sales": 120, "units": 9},
    {"month": "Feb", "region": "West", "product": "Widget", "sales": "n/a", "units": 7},
    {"month": "Mar", "region": "North", "product": "Widget", "sales": 80, "units": 5},
]

ANALYSIS_RAW = {
    "dataType": "Sales",
    "suggestedTemplate": "Sales / Marketing",
    "summary": "East leads revenue while widgets carry most volume.",
    "insights": ["East is the top region", "Widgets outsell gadgets", "February dipped"],
    "chartSuggestions": [
        {
            "chartType": "line",
            "compatibleChartTypes": ["line", "bar", "area"],
            "title": "Sales by Month",
            "x_axis": "month",
            "y_axis": "sales",
            "grouping_column": None,
        },
        {
            "chartType": "grouped-bar",
            "compatibleChartTypes": ["grouped-bar", "stacked-bar"],
            "title": "Sales by Region and Product",
            "x_axis": "region",
            "y_axis": "sales",
            "grouping_column": "product",
        },
        {
            "chartType": "pie",
            "compatibleChartTypes": ["pie", "donut"],
            "title": "Sales Share",
            "x_axis": "region",
            "y_axis": "sales",
        },
        {
            "chartType": "kpi",
            "compatibleChartTypes": ["kpi"],
            "title": "Total Sales",
            "x_axis": None,
            "y_axis": "sales",
            "grouping_column": None,
        },
    ],
    "filterableColumns": ["region", "product"],
}


@pytest.fixture
def region_df():
    return pd.DataFrame(
        [
            {"region": "East", "sales": 10},
            {"region": "West", "sales": 20},
            {"region": "East", "sales": 5},
        ]
    )


@pytest.fixture
def sales_rows():
    return copy.deepcopy(SALES_ROWS)


@pytest.fixture
def sales_df():
    return dataset_from_records(SALES_ROWS)


@pytest.fixture
def analysis_raw():
    return copy.deepcopy(ANALYSIS_RAW)


@pytest.fixture
def analysis(analysis_raw):
    return normalize_analysis(analysis_raw)


@pytest.fixture
def session(sales_df, analysis):
    return create_session(sales_df, analysis, "sales.csv")
