"""SQL validation utilities"""
import re
import logging
import sqlparse

from ..errors import SQLValidationError
from ..models import SQLValidationResult

logger = logging.getLogger(__name__)

DANGEROUS_KEYWORDS = ["drop", "delete", "insert", "update", "alter", "create", "truncate"]


def validate_sql_syntax(sql: str) -> SQLValidationResult:
    """
    Validate generated SQL against the read-only safety rules.

    Rules:
    1. Must start with SELECT (case-insensitive, trimmed)
    2. Must not contain a dangerous keyword anywhere (substring match)
    3. Parentheses must balance

    Dangerous text is reported, never stripped.

    Args:
        sql: SQL query string

    Returns:
        Validation result
    """
    errors = []
    warnings = []
    suggestions = []

    if not sql or not sql.strip():
        return SQLValidationResult(
            is_valid=False,
            errors=["SQL query is empty"],
            warnings=[],
            suggestions=["Provide a valid SQL query"]
        )

    sql_lower = sql.strip().lower()

    if not sql_lower.startswith("select"):
        errors.append("Query must start with SELECT")
        suggestions.append("Only read-only SELECT statements are allowed")

    for keyword in DANGEROUS_KEYWORDS:
        if keyword in sql_lower:
            errors.append(f"Dangerous operation '{keyword.upper()}' not allowed")

    if sql.count("(") != sql.count(")"):
        errors.append(
            f"Unbalanced parentheses: {sql.count('(')} opening, {sql.count(')')} closing"
        )

    statements = [statement for statement in sqlparse.split(sql) if statement.strip()]
    if len(statements) > 1:
        warnings.append(f"Query contains {len(statements)} statements")

    return SQLValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
        suggestions=suggestions
    )


def ensure_safe_sql(sql: str) -> str:
    """
    Validate SQL and raise when any safety rule is violated.

    Raises:
        SQLValidationError: With every violated rule in the message
    """
    result = validate_sql_syntax(sql)
    if not result.is_valid:
        logger.warning(f"Rejected SQL: {result.errors}")
        raise SQLValidationError(
            f"SQL validation failed: {'; '.join(result.errors)}",
            result=result
        )
    return sql


def clean_sql_response(text: str) -> str:
    """
    Clean SQL returned by the language model.

    Strips markdown fences, collapses whitespace and drops the trailing
    semicolon. Nothing else is altered.
    """
    sql = re.sub(r"```(?:sql)?", "", text or "", flags=re.IGNORECASE)
    sql = " ".join(sql.split())
    while sql.endswith(";"):
        sql = sql[:-1].rstrip()
    return sql
