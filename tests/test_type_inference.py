"""
Unit tests for column type inference
"""

import itertools
from datetime import datetime

from nl_analytics.query.type_inference import (
    classify_value, convert_value, infer_type, parse_date, parse_number, quick_infer_type
)


class TestClassifyValue:
    """Test cases for per-value classification"""

    def test_boolean_before_number(self):
        """Test boolean literals win over other types"""
        assert classify_value("true") == "boolean"
        assert classify_value("FALSE") == "boolean"
        assert classify_value(True) == "boolean"

    def test_numbers(self):
        """Test full numeric parsing"""
        assert classify_value("42") == "number"
        assert classify_value("-3.5") == "number"
        assert classify_value("1e3") == "number"
        assert classify_value(7) == "number"

    def test_non_finite_and_partial_numbers_are_strings(self):
        """Test NaN, infinity and partial numbers are not numbers"""
        assert classify_value("NaN") == "string"
        assert classify_value("inf") == "string"
        assert classify_value("12abc") == "string"
        assert classify_value("1_000") == "string"

    def test_date_layouts(self):
        """Test the supported date layouts"""
        assert classify_value("2024-01-15") == "date"
        assert classify_value("01/15/2024") == "date"
        assert classify_value("01-15-2024") == "date"
        assert classify_value("2024-01-15T10:30:00") == "date"

    def test_pattern_without_valid_date_is_string(self):
        """Test a date-shaped value that does not parse"""
        assert classify_value("13/45/2024") == "string"
        assert classify_value("2024-13-01") == "string"


class TestInferType:
    """Test cases for column type inference"""

    def test_plurality_wins(self):
        """Test the most common type is chosen"""
        assert infer_type(["1", "2", "x"]) == "number"
        assert infer_type(["true", "false", "1"]) == "boolean"

    def test_empty_column_is_string(self):
        """Test empty and null-only columns default to string"""
        assert infer_type([]) == "string"
        assert infer_type([None, "", "   "]) == "string"

    def test_empty_values_are_not_sampled(self):
        """Test empty cells do not count toward any type"""
        assert infer_type(["", "", "5", None]) == "number"

    def test_ties_follow_enumeration_order(self):
        """Test ties resolve as string, number, date, boolean"""
        assert infer_type(["a", "1"]) == "string"
        assert infer_type(["1", "2024-01-01"]) == "number"
        assert infer_type(["2024-01-01", "true"]) == "date"

    def test_deterministic_for_any_order(self):
        """Test the result depends only on the sample bag"""
        values = ["a", "1", "2024-01-01", "true", "b", "2"]
        results = {infer_type(list(order)) for order in itertools.permutations(values)}
        assert results == {infer_type(values)}
        assert infer_type(values) == infer_type(values)

    def test_sample_limit(self):
        """Test only the first sampled values are considered"""
        values = ["a", "b", "c"] + ["1"] * 10
        assert infer_type(values, limit=3) == "string"
        assert infer_type(values) == "number"

    def test_quick_infer_uses_first_five(self):
        """Test the quick check samples five values"""
        assert quick_infer_type(["x"] * 5 + ["1"] * 20) == "string"


class TestConversion:
    """Test cases for cell conversion"""

    def test_parse_number(self):
        """Test integers stay integral"""
        assert parse_number("10") == 10
        assert isinstance(parse_number("10"), int)
        assert parse_number("1.5") == 1.5
        assert parse_number("abc") is None
        assert parse_number(True) is None

    def test_parse_date(self):
        """Test date parsing across layouts"""
        assert parse_date("2024-01-15") == datetime(2024, 1, 15)
        assert parse_date("03/01/2024") == datetime(2024, 3, 1)
        assert parse_date("hello") is None

    def test_convert_value(self):
        """Test conversion per column type"""
        assert convert_value("10", "number") == 10
        assert convert_value("abc", "number") is None
        assert convert_value("2024-01-15", "date") == datetime(2024, 1, 15)
        assert convert_value("True", "boolean") is True
        assert convert_value("", "string") is None
        assert convert_value("x", "string") == "x"
