"""
Tests for the chart type registry, suggestion parsing and Vega-Lite rendering.
"""

import pandas as pd
import pytest

from autobi.charts import (
    COMPATIBLE_CHART_TYPES,
    ChartSuggestion,
    ChartType,
    build_chart,
    can_switch,
    chart_type_label,
    compatible_chart_types,
    missing_field_message,
    normalize_chart_suggestion,
    parse_chart_type,
    registry_payload,
    to_vega_spec,
)
from autobi.config import TEMPLATES


class TestRegistry:
    """Switch groups are closed and lead with the chart type itself."""

    @pytest.mark.parametrize("chart_type", list(ChartType))
    def test_leads_with_itself(self, chart_type):
        assert COMPATIBLE_CHART_TYPES[chart_type][0] == chart_type

    @pytest.mark.parametrize("chart_type", list(ChartType))
    def test_switch_back_is_always_allowed(self, chart_type):
        for target in COMPATIBLE_CHART_TYPES[chart_type]:
            assert chart_type in COMPATIBLE_CHART_TYPES[target]

    def test_single_member_groups(self):
        assert COMPATIBLE_CHART_TYPES[ChartType.kpi] == (ChartType.kpi,)
        assert COMPATIBLE_CHART_TYPES[ChartType.funnel] == (ChartType.funnel,)

    def test_payload_is_plain_strings(self):
        payload = registry_payload()
        assert payload["grouped-bar"] == ["grouped-bar", "stacked-bar"]
        assert set(payload) == {c.value for c in ChartType}


class TestParseChartType:

    @pytest.mark.parametrize("raw,expected", [
        ("line", ChartType.line),
        ("Grouped_Bar", ChartType.grouped_bar),
        ("stacked bar", ChartType.stacked_bar),
        (" DONUT ", ChartType.donut),
        (ChartType.pie, ChartType.pie),
        ("heatmap", None),
        (3, None),
        (None, None),
    ])
    def test_parse(self, raw, expected):
        assert parse_chart_type(raw) == expected

    def test_label(self):
        assert chart_type_label(ChartType.grouped_bar) == "Grouped Bar"
        assert chart_type_label(ChartType.kpi) == "Kpi"


class TestCompatibleChartTypes:
    """Proposed switch lists are validated against the registry."""

    def test_empty_proposal_uses_default(self):
        assert compatible_chart_types(ChartType.line) == COMPATIBLE_CHART_TYPES[ChartType.line]

    def test_unknown_and_out_of_group_dropped(self):
        result = compatible_chart_types(ChartType.line, ["line", "pie", "nonsense", "bar", "bar"])
        assert result == (ChartType.line, ChartType.bar)

    def test_chart_type_forced_first(self):
        assert compatible_chart_types(ChartType.line, ["area"]) == (ChartType.line, ChartType.area)

    def test_suggestion_validates_on_construction(self):
        chart = ChartSuggestion("Share", ChartType.pie, "sales", x_axis="region",
                                compatible_chart_types=("pie", "bar"))
        assert chart.compatible_chart_types == (ChartType.pie,)

    def test_suggestion_default_list(self):
        chart = ChartSuggestion("Share", ChartType.pie, "sales", x_axis="region")
        assert chart.compatible_chart_types == (ChartType.pie, ChartType.donut)


class TestNormalizeChartSuggestion:

    def test_valid(self):
        chart = normalize_chart_suggestion({
            "chartType": "grouped-bar",
            "compatibleChartTypes": ["grouped-bar", "stacked-bar"],
            "title": "By region",
            "x_axis": "region",
            "y_axis": "sales",
            "grouping_column": "product",
        })
        assert chart.chart_type == ChartType.grouped_bar
        assert chart.grouping_column == "product"
        assert chart.to_dict()["compatibleChartTypes"] == ["grouped-bar", "stacked-bar"]

    def test_unknown_type_rejected(self):
        assert normalize_chart_suggestion({"chartType": "radar", "y_axis": "v"}) is None

    def test_missing_value_field_rejected(self):
        assert normalize_chart_suggestion({"chartType": "bar", "x_axis": "region"}) is None

    def test_title_defaults_to_label(self):
        chart = normalize_chart_suggestion({"chartType": "stacked-bar", "y_axis": "v"})
        assert chart.title == "Stacked Bar"

    def test_blank_fields_become_none(self):
        chart = normalize_chart_suggestion({"chartType": "bar", "y_axis": "v", "x_axis": "  ", "grouping_column": ""})
        assert chart.x_axis is None
        assert chart.grouping_column is None

    def test_can_switch(self):
        chart = normalize_chart_suggestion({"chartType": "bar", "y_axis": "v", "compatibleChartTypes": ["bar", "line"]})
        assert can_switch(chart, "line")
        assert not can_switch(chart, "area")
        assert not can_switch(chart, "pie")


class TestMissingFieldMessage:
    """Charts whose fields cannot drive a geometry get a placeholder message."""

    def test_grouped_bar_without_grouping(self):
        chart = ChartSuggestion("t", ChartType.grouped_bar, "sales", x_axis="region")
        message = missing_field_message(chart, ChartType.grouped_bar)
        assert message == "Grouped Bar chart requires a category field (x_axis) and a grouping column."

    def test_grouped_bar_complete(self):
        chart = ChartSuggestion("t", ChartType.grouped_bar, "sales", x_axis="region", grouping_column="product")
        assert missing_field_message(chart, ChartType.stacked_bar) is None

    def test_pie_without_category(self):
        chart = ChartSuggestion("t", ChartType.pie, "sales")
        assert "x_axis" in missing_field_message(chart, ChartType.pie)

    def test_scatter_accepts_either_field(self):
        chart = ChartSuggestion("t", ChartType.scatter, "sales", grouping_column="units")
        assert missing_field_message(chart, ChartType.scatter) is None
        bare = ChartSuggestion("t", ChartType.scatter, "sales")
        assert missing_field_message(bare, ChartType.scatter) is not None

    @pytest.mark.parametrize("chart_type", [ChartType.line, ChartType.bar, ChartType.area, ChartType.kpi])
    def test_value_only_geometries(self, chart_type):
        chart = ChartSuggestion("t", chart_type, "sales")
        assert missing_field_message(chart, chart_type) is None


class TestBuildChart:
    """Altair charts convert into Vega-Lite dict specs."""

    def test_line(self):
        frame = pd.DataFrame({"label": ["Jan", "Feb"], "value": [1.0, 2.0]})
        spec = to_vega_spec(build_chart(ChartType.line, frame, x_title="month", y_title="sales"))
        assert spec["mark"]["type"] == "line"
        assert spec["encoding"]["x"]["field"] == "label"

    def test_donut_has_inner_radius(self):
        frame = pd.DataFrame({"name": ["East", "West"], "value": [3.0, 1.0]})
        spec = to_vega_spec(build_chart(ChartType.donut, frame))
        assert spec["mark"]["type"] == "arc"
        assert spec["mark"]["innerRadius"] == 60

    def test_grouped_bar_offsets_by_group(self):
        frame = pd.DataFrame({"category": ["East", "East"], "group": ["A", "B"], "value": [1.0, 2.0]})
        spec = to_vega_spec(build_chart(ChartType.grouped_bar, frame, template=TEMPLATES[1]))
        assert spec["encoding"]["xOffset"]["field"] == "group"
        assert spec["encoding"]["color"]["scale"]["range"] == list(TEMPLATES[1].chart_fills)

    def test_stacked_bar_has_no_offset(self):
        frame = pd.DataFrame({"category": ["East"], "group": ["A"], "value": [1.0]})
        spec = to_vega_spec(build_chart(ChartType.stacked_bar, frame))
        assert "xOffset" not in spec["encoding"]

    def test_funnel_is_horizontal(self):
        frame = pd.DataFrame({"name": ["Visit", "Paid"], "value": [10.0, 1.0]})
        spec = to_vega_spec(build_chart(ChartType.funnel, frame))
        assert spec["encoding"]["y"]["field"] == "name"
        assert spec["encoding"]["x"]["field"] == "value"
