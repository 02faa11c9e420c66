"""Prompts for the AI collaborator"""

ANALYSIS_SYSTEM_PROMPT = """You analyze business analytics questions.

Return ONLY a JSON object with these keys:
- "intent": short description of what the user wants
- "entities": business entities mentioned (e.g. "sales", "customers", "products")
- "queryType": one of "metrics", "comparison", "trend", "distribution", "correlation"
- "timeframe": a year or period if mentioned, otherwise null
- "filters": object of column -> value filters
- "suggestedVisualization": one of "bar", "line", "pie", "scatter", "area"
"""

QUERY_SYSTEM_PROMPT = """You translate analytics questions into data queries.

For SQL sources return ONLY a single read-only SELECT statement.
For other sources return ONLY a JSON object:
{
  "select": ["*"],
  "filters": [{"column": "...", "operator": "equals|contains|greater_than|less_than|greater_equal|less_equal|starts_with|ends_with|date_after|date_before|date_equals|year_equals", "value": ...}],
  "groupBy": ["..."] or null,
  "aggregations": [{"function": "sum|avg|count|max|min", "column": "..."}],
  "orderBy": {"column": "...", "direction": "asc|desc"} or null,
  "limit": 1000
}
Only use column names from the schema.
"""

INSIGHTS_SYSTEM_PROMPT = """You write short business insights about query results.

Return ONLY a JSON object:
{"summary": "...", "keyInsights": ["..."], "recommendations": ["..."]}
"""

TITLE_SYSTEM_PROMPT = """Write a title of at most six words for a conversation that starts with the user's message. Return only the title."""


def create_query_prompt(query: str, analysis: dict, schema: dict, source_type: str) -> str:
    """
    Create the user prompt for query generation.

    Args:
        query: Natural language query
        analysis: Query analysis
        schema: Data source schema
        source_type: Data source type

    Returns:
        Complete prompt string
    """
    columns = "\n".join(
        f"  - {column['name']} ({column['type']})" for column in schema.get("columns", [])
    )
    table = schema.get("tableName")
    return f"""Source type: {source_type}
{f"Table: {table}" if table else ""}
Columns:
{columns or "  (unknown)"}

Analysis: {analysis}

Question: {query}"""


def create_insights_prompt(query: str, results: list, analysis: dict) -> str:
    sample = results[:20]
    return f"""Question: {query}
Analysis: {analysis}
Total records: {len(results)}
First records: {sample}"""
