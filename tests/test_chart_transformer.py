"""
Unit tests for chart data transformation
"""

import pytest

from nl_analytics.charts.style_utils import (
    COLOR_PALETTE, background_color, generate_colors, get_color_for_index, hex_to_rgba,
    should_show_legend
)
from nl_analytics.charts.transformer import (
    column_types_for, detect_chart_shape, format_month_year, format_number, format_percentage,
    suggest_chart_type, to_label_value_pairs, transform
)
from nl_analytics.errors import TransformationError


@pytest.fixture
def category_records():
    return [
        {"category": "A", "value": 10},
        {"category": "B", "value": 30},
        {"category": "C", "value": 20},
    ]


@pytest.fixture
def monthly_records():
    return [
        {"month": "2024-02-01", "sales": 150},
        {"month": "2024-01-01", "sales": 100},
        {"month": "2024-03-01", "sales": 200},
    ]


class TestFormatting:
    """Test cases for metric formatting"""

    @pytest.mark.parametrize("value,expected", [
        (999, "999"),
        (1500, "1.5K"),
        (1250, "1.3K"),
        (2_300_000, "2.3M"),
        (0, "0"),
        (60.4, "60"),
        (2.5, "3"),
    ])
    def test_format_number(self, value, expected):
        """Test compact number formatting rounds half up"""
        assert format_number(value) == expected

    def test_format_percentage(self):
        """Test percentages keep one decimal"""
        assert format_percentage(30, 60) == "50.0%"
        assert format_percentage(1, 3) == "33.3%"
        assert format_percentage(5, 0) == "0.0%"

    def test_format_month_year(self):
        """Test dates render as abbreviated month and year"""
        assert format_month_year("2024-01-15") == "Jan 2024"
        assert format_month_year("12/05/2023") == "Dec 2023"
        assert format_month_year("soon") == "soon"


class TestStyleUtils:
    """Test cases for deterministic colors"""

    def test_palette_cycles(self):
        """Test indexes wrap around the palette"""
        assert get_color_for_index(0) == get_color_for_index(len(COLOR_PALETTE))
        assert get_color_for_index(3) == COLOR_PALETTE[3]

    def test_hex_to_rgba(self):
        """Test hex colors convert to rgba strings"""
        assert hex_to_rgba("#14b8a6", 0.8) == "rgba(20, 184, 166, 0.8)"
        assert background_color(0) == "rgba(20, 184, 166, 0.8)"

    def test_generate_colors(self):
        """Test one color per item"""
        colors = generate_colors(10)
        assert len(colors) == 10
        assert colors[8] == colors[0]

    def test_legend(self):
        """Test legend visibility rules"""
        assert should_show_legend("pie", 1) is True
        assert should_show_legend("bar", 1) is False
        assert should_show_legend("bar", 2) is True


class TestTransform:
    """Test cases for transform"""

    def test_pie_chart(self, category_records):
        """Test a categorical pie chart with percentage tooltips"""
        chart = transform(category_records, "pie")

        assert chart.type == "pie"
        assert chart.labels == ["A", "B", "C"]
        assert chart.datasets[0].data == [10, 30, 20]
        assert chart.metrics["Total"] == "60"
        assert chart.metrics["Max"] == "30"
        assert chart.metrics["Min"] == "10"
        assert "B: 30 (50.0%)" in chart.options["plugins"]["tooltip"]["labels"]
        assert chart.options["plugins"]["legend"] == {"display": True, "position": "right"}

    def test_row_colors(self, category_records):
        """Test categorical charts color each row"""
        chart = transform(category_records, "bar")

        assert chart.datasets[0].backgroundColor == generate_colors(3)
        assert chart.options["plugins"]["legend"]["display"] is False

    def test_time_series(self, monthly_records):
        """Test a line chart sorts by date and reports an increasing trend"""
        chart = transform(monthly_records, "line")

        assert chart.type == "line"
        assert chart.labels == ["Jan 2024", "Feb 2024", "Mar 2024"]
        assert chart.datasets[0].data == [100, 150, 200]
        assert chart.datasets[0].fill is True
        assert chart.datasets[0].tension == 0.4
        assert chart.metrics == {"Total": "450", "Average": "150", "Trend": "increasing", "Points": "3"}

    def test_time_series_sort_is_stable(self):
        """Test rows sharing a date keep their original relative order"""
        records = [
            {"month": "2024-01-01", "sales": 1},
            {"month": "2024-02-01", "sales": 5},
            {"month": "2024-01-01", "sales": 2},
        ]
        chart = transform(records, "line")

        assert chart.labels == ["Jan 2024", "Jan 2024", "Feb 2024"]
        assert chart.datasets[0].data == [1.0, 2.0, 5.0]

    def test_column_types_use_leading_rows(self):
        """Test column typing looks only at the first few records"""
        records = [{"code": "x", "sales": 1}] * 5 + [{"code": 7, "sales": 2}] * 20

        assert column_types_for(records) == {"code": "string", "sales": "number"}

    @pytest.mark.parametrize("values,trend", [
        ([300, 200, 100], "decreasing"),
        ([100, 250, 100], "stable"),
    ])
    def test_trend_direction(self, values, trend):
        """Test trend compares the last point with the first"""
        records = [
            {"month": f"2024-0{index + 1}-01", "sales": value}
            for index, value in enumerate(values)
        ]
        assert transform(records, "line").metrics["Trend"] == trend

    def test_line_without_date_is_categorical(self, category_records):
        """Test requested line charts without a date column fall back to categories"""
        chart = transform(category_records, "line")

        assert chart.type == "line"
        assert chart.labels == ["A", "B", "C"]

    def test_scatter(self):
        """Test scatter charts pair two numeric columns"""
        chart = transform([{"x": 1, "y": 2}, {"x": 3, "y": 4}], "scatter")

        assert chart.type == "scatter"
        assert chart.labels == ["1", "3"]
        assert chart.datasets[0].data == [2, 4]
        assert chart.options["points"] == [{"x": 1.0, "y": 2.0}, {"x": 3.0, "y": 4.0}]

    def test_detected_shapes(self, category_records, monthly_records):
        """Test shapes are detected when no chart type is requested"""
        assert transform(category_records).type == "categorical"
        assert transform(monthly_records).type == "time_series"
        assert transform([{"a": 1, "b": 2}]).type == "numerical"
        assert transform([{"a": "x", "b": "y"}]).type == "comparative"
        assert transform([{"a": "x"}]).type == "generic"

    def test_datasets_match_labels(self):
        """Test every dataset has one value per label"""
        chart = transform([{"a": 1, "b": 2, "c": 3}, {"a": 4, "b": 5, "c": 6}])
        assert chart.labels == ["Item 1", "Item 2"]
        assert all(len(dataset.data) == len(chart.labels) for dataset in chart.datasets)

    def test_label_value_pairs(self, category_records):
        """Test labels and values recover the input pairs"""
        chart = transform(category_records, "bar")
        assert to_label_value_pairs(chart) == [("A", 10), ("B", 30), ("C", 20)]

    @pytest.mark.parametrize("records", [[], [1, 2], [{}]])
    def test_invalid_records(self, records):
        """Test empty or malformed input raises"""
        with pytest.raises(TransformationError):
            transform(records)


class TestDetection:
    """Test cases for shape detection and chart suggestions"""

    def test_detect_precedence(self):
        """Test a date column wins over every other rule"""
        assert detect_chart_shape({"d": "date", "n": "number", "s": "string"}) == "time_series"
        assert detect_chart_shape({"n": "number", "s": "string"}) == "categorical"
        assert detect_chart_shape({"s": "string"}) == "generic"

    def test_suggest_chart_type(self, category_records, monthly_records):
        """Test chart suggestions from record shapes"""
        assert suggest_chart_type(monthly_records) == "line"
        assert suggest_chart_type(category_records) == "pie"
        many = [{"category": f"c{index}", "value": index} for index in range(9)]
        assert suggest_chart_type(many) == "bar"
        assert suggest_chart_type([{"x": 1, "y": 2}]) == "scatter"
        assert suggest_chart_type([]) == "bar"
