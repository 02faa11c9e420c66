"""
Deterministic keyword-driven fallbacks used when the AI collaborator
is absent, fails, or times out.
"""
import logging
from typing import List, Optional

from ..config import settings
from ..models import (
    Aggregation, ChartData, Insights, OrderBy, QueryAnalysis, QueryFilter, Record, Schema,
    StructuredQuery
)

logger = logging.getLogger(__name__)

ENTITY_KEYWORDS = {
    "sales": ["sales", "revenue", "income", "sold"],
    "customers": ["customer", "user", "client"],
    "products": ["product", "service", "item"],
}

# (keywords, queryType, suggestedVisualization); first match wins
QUERY_TYPE_RULES = [
    (["how many", "total", "count"], "metrics", "bar"),
    (["by", "each", "per"], "distribution", "pie"),
    (["time", "month", "trend"], "trend", "line"),
]
DEFAULT_QUERY_TYPE = ("metrics", "bar")

VALUE_COLUMN_HINTS = ["sales", "revenue", "amount", "total", "price", "value", "quantity"]


# ============================================================================
# Analysis
# ============================================================================

def extract_entities(text: str) -> List[str]:
    lowered = text.lower()
    return [
        entity for entity, keywords in ENTITY_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    ]


def extract_timeframe(text: str, years: Optional[List[str]] = None) -> Optional[str]:
    """Latest known year mentioned in the text"""
    lowered = text.lower()
    found = None
    for year in sorted(years or settings.FALLBACK_YEARS):
        if year in lowered:
            found = year
    return found


def classify_query(text: str):
    lowered = text.lower()
    for keywords, query_type, visualization in QUERY_TYPE_RULES:
        if any(keyword in lowered for keyword in keywords):
            return query_type, visualization
    return DEFAULT_QUERY_TYPE


def analyze_locally(text: str) -> QueryAnalysis:
    """
    Analyze a natural language query with keyword rules only.

    Args:
        text: User's natural language query

    Returns:
        Query analysis
    """
    entities = extract_entities(text)
    timeframe = extract_timeframe(text)
    query_type, visualization = classify_query(text)

    intent = f"Analyze {' and '.join(entities) if entities else 'data'}"
    if timeframe:
        intent += f" for {timeframe}"

    return QueryAnalysis(
        intent=intent,
        entities=entities,
        queryType=query_type,
        timeframe=timeframe,
        filters={"year": timeframe} if timeframe else {},
        suggestedVisualization=visualization,
    )


# ============================================================================
# Query generation
# ============================================================================

def _first(columns: List[str]) -> Optional[str]:
    return columns[0] if columns else None


def detect_value_column(schema: Schema, entities: List[str]) -> Optional[str]:
    """Pick the numeric column most likely to hold the measured value"""
    numeric = schema.columns_of_type("number")
    hints = entities + VALUE_COLUMN_HINTS
    for hint in hints:
        for column in numeric:
            if hint in column.lower():
                return column
    return _first(numeric)


def generate_query_locally(analysis: QueryAnalysis, schema: Schema) -> StructuredQuery:
    """
    Build a structured query from an analysis and schema.

    Always returns a valid query. Roles missing from the schema
    (no date column, no categorical column) are left out.
    """
    date_column = _first(schema.columns_of_type("date"))
    category_column = _first(schema.columns_of_type("string"))
    value_column = detect_value_column(schema, analysis.entities)

    query = StructuredQuery(select=["*"], limit=settings.DEFAULT_QUERY_LIMIT)

    if analysis.timeframe and analysis.timeframe.isdigit():
        query.filters.append(QueryFilter(
            column=date_column or "year",
            operator="year_equals",
            value=int(analysis.timeframe),
        ))

    if analysis.queryType == "metrics" and "sales" in analysis.entities:
        query.aggregations = [Aggregation(function="count", column=value_column or "*")]

    elif analysis.queryType == "distribution":
        group_column = category_column or _first(schema.column_names())
        if group_column:
            query.groupBy = [group_column]
            query.aggregations = [Aggregation(function="count", column=group_column)]

    elif analysis.queryType == "trend" and date_column:
        query.groupBy = [date_column]
        if value_column:
            query.aggregations = [Aggregation(function="sum", column=value_column)]
        else:
            query.aggregations = [Aggregation(function="count", column=date_column)]
        query.orderBy = OrderBy(column=date_column, direction="asc")

    return query


# ============================================================================
# Insights & conversation helpers
# ============================================================================

def generate_insights_locally(
    results: List[Record],
    text: str,
    chart_data: Optional[ChartData] = None
) -> Insights:
    """Structural insights from the result size and chart metrics"""
    count = len(results)
    if count == 0:
        return Insights(
            summary=f'No records matched your query: "{text}"',
            keyInsights=["The query returned 0 records"],
            recommendations=[
                "Broaden or remove filters such as the timeframe",
                "Check that the selected data source contains the requested data",
            ],
        )

    key_insights = [f"The query returned {count} record{'s' if count != 1 else ''}"]
    if chart_data:
        for name, value in chart_data.metrics.items():
            key_insights.append(f"{name}: {value}")

    return Insights(
        summary=f'Found {count} records matching your query: "{text}"',
        keyInsights=key_insights,
        recommendations=[
            "Compare this result against a previous period",
            "Break the result down by another dimension for more detail",
        ],
    )


def generate_title_locally(first_message: str) -> str:
    words = (first_message or "").split()
    if not words:
        return "Analytics Discussion"
    title = " ".join(words[:6])
    return title + ("..." if len(words) > 6 else "")


def suggest_improvements(text: str) -> List[str]:
    """Tips for phrasing a more precise question"""
    lowered = text.lower()
    suggestions = []
    if extract_timeframe(text) is None and not any(word in lowered for word in ("month", "year", "week", "quarter")):
        suggestions.append("Add a timeframe, for example 'in 2024' or 'by month'")
    if not extract_entities(text):
        suggestions.append("Name the metric you care about, for example sales or customers")
    if classify_query(text)[0] != "distribution":
        suggestions.append("Add a grouping dimension, for example 'by region' or 'per product'")
    return suggestions
