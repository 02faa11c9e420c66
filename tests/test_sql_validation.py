"""
Unit tests for SQL safety validation
"""

import pytest

from nl_analytics.errors import SQLValidationError
from nl_analytics.utils.validators import clean_sql_response, ensure_safe_sql, validate_sql_syntax


class TestValidateSQLSyntax:
    """Test cases for validate_sql_syntax"""

    def test_valid_select(self):
        """Test a plain SELECT passes"""
        result = validate_sql_syntax("  select region, SUM(amount) FROM orders GROUP BY region")
        assert result.is_valid is True
        assert result.errors == []

    @pytest.mark.parametrize("keyword", ["drop", "delete", "insert", "update", "alter", "create", "truncate"])
    def test_dangerous_keywords_rejected(self, keyword):
        """Test every banned keyword is named in the violation"""
        result = validate_sql_syntax(f"SELECT * FROM x; {keyword.upper()} TABLE x")
        assert result.is_valid is False
        assert f"Dangerous operation '{keyword.upper()}' not allowed" in result.errors

    def test_drop_after_select(self):
        """Test a chained DROP statement is rejected"""
        result = validate_sql_syntax("SELECT * FROM x; DROP TABLE x")
        assert result.is_valid is False
        assert any("DROP" in error for error in result.errors)
        assert result.warnings == ["Query contains 2 statements"]

    def test_substring_match_is_strict(self):
        """Test keywords are matched anywhere, including inside identifiers"""
        result = validate_sql_syntax("SELECT created_at FROM orders")
        assert result.is_valid is False
        assert "Dangerous operation 'CREATE' not allowed" in result.errors

    def test_must_start_with_select(self):
        """Test non-SELECT statements are rejected"""
        result = validate_sql_syntax("WITH t AS (SELECT 1) SELECT * FROM t")
        assert result.is_valid is False
        assert "Query must start with SELECT" in result.errors

    def test_unbalanced_parentheses(self):
        """Test parentheses must balance"""
        result = validate_sql_syntax("SELECT COUNT(* FROM orders")
        assert result.is_valid is False
        assert "Unbalanced parentheses: 1 opening, 0 closing" in result.errors

    def test_empty_query(self):
        """Test empty SQL is rejected"""
        assert validate_sql_syntax("   ").is_valid is False


class TestEnsureSafeSQL:
    """Test cases for ensure_safe_sql"""

    def test_returns_sql_unchanged(self):
        """Test safe SQL is returned as-is"""
        sql = "SELECT * FROM orders"
        assert ensure_safe_sql(sql) == sql

    def test_raises_with_result(self):
        """Test violations raise and are never stripped"""
        with pytest.raises(SQLValidationError) as exc_info:
            ensure_safe_sql("SELECT * FROM x; DROP TABLE x")
        assert "DROP" in str(exc_info.value)
        assert exc_info.value.result.is_valid is False


class TestCleanSQLResponse:
    """Test cases for clean_sql_response"""

    def test_strips_fences_and_semicolon(self):
        """Test markdown fences and trailing semicolons are removed"""
        assert clean_sql_response("```sql\nSELECT *\nFROM orders;\n```") == "SELECT * FROM orders"

    def test_keeps_inner_content(self):
        """Test dangerous text is not removed by cleaning"""
        assert clean_sql_response("SELECT 1; DROP TABLE x;") == "SELECT 1; DROP TABLE x"
