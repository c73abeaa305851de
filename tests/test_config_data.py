"""
Tests for settings, templates and dataset loading.
"""

import pandas as pd
import pytest

from autobi.config import DashboardSettings, TEMPLATES, load_settings, normalize_settings, resolve_template
from autobi.data import csv_snippet, dataset_from_records, read_dataset


class TestSettings:

    def test_defaults(self):
        assert normalize_settings() == DashboardSettings()
        assert DashboardSettings().pie_top_n == 10

    def test_clamped(self):
        settings = normalize_settings({"pie_top_n": 0, "snippet_rows": 5000, "kpi_trend_window": "abc"})
        assert settings.pie_top_n == 1
        assert settings.snippet_rows == 1000
        assert settings.kpi_trend_window == 30

    @pytest.mark.parametrize("raw,expected", [("ROW", "row"), ("value", "value"), ("sideways", "value"), (None, "value")])
    def test_funnel_order(self, raw, expected):
        assert normalize_settings({"funnel_order": raw}).funnel_order == expected

    def test_environment_overrides(self):
        settings = load_settings({"AUTOBI_PIE_TOP_N": "8", "AUTOBI_FUNNEL_ORDER": "row", "UNRELATED": "x"})
        assert settings.pie_top_n == 8
        assert settings.funnel_order == "row"
        assert settings.snippet_rows == 10


class TestTemplates:

    def test_exact_and_case_insensitive(self):
        assert resolve_template("sales / marketing").name == "Sales / Marketing"

    @pytest.mark.parametrize("name", [None, "", "Space Exploration"])
    def test_unknown_falls_back_to_first(self, name):
        assert resolve_template(name) is TEMPLATES[0]


class TestDatasetLoading:

    def test_csv_bytes(self):
        df = read_dataset(b" region ,sales\nEast,10\n\nWest,20\n", "orders.csv")
        assert list(df.columns) == ["region", "sales"]
        assert df["sales"].tolist() == [10, 20]

    def test_all_blank_rows_dropped(self):
        df = read_dataset(b"a,b\n1,2\n,\n3,4\n", "x.csv")
        assert len(df) == 2
        assert list(df.index) == [0, 1]

    def test_excel_round_trip(self, tmp_path):
        path = tmp_path / "orders.xlsx"
        pd.DataFrame({"region": ["East", "West"], "sales": [1, 2]}).to_excel(path, index=False)
        df = read_dataset(path)
        assert df["region"].tolist() == ["East", "West"]

    def test_records_schema_from_first_row(self):
        df = dataset_from_records([{"a": 1, "b": 2}, {"a": 3, "c": 4}])
        assert list(df.columns) == ["a", "b"]
        assert pd.isna(df.loc[1, "b"])

    def test_records_empty(self):
        assert dataset_from_records([]).empty

    def test_csv_snippet(self):
        df = pd.DataFrame({"region": ["East", "West", "North"], "sales": [10.0, 2.5, None]})
        assert csv_snippet(df, rows=2) == "region,sales\nEast,10\nWest,2.5"
        assert csv_snippet(pd.DataFrame()) == ""
