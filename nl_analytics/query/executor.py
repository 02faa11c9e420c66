"""In-memory execution of structured queries over record lists"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..models import Aggregation, QueryFilter, Record, StructuredQuery
from .type_inference import parse_date, parse_number

logger = logging.getLogger(__name__)

GROUP_KEY_SEPARATOR = "|"
DATE_OPERATORS = {"date_after", "date_before", "date_equals", "year_equals"}


# ============================================================================
# Predicates
# ============================================================================

def _compare(cell: Any, value: Any) -> Optional[int]:
    """Three-way comparison on numbers, then dates, then text; None if incomparable"""
    left, right = parse_number(cell), parse_number(value)
    if left is not None and right is not None:
        return (left > right) - (left < right)
    left_date, right_date = parse_date(cell), parse_date(value)
    if left_date is not None and right_date is not None:
        left_date, right_date = left_date.replace(tzinfo=None), right_date.replace(tzinfo=None)
        return (left_date > right_date) - (left_date < right_date)
    if cell is None or value is None:
        return None
    left_text, right_text = str(cell), str(value)
    return (left_text > right_text) - (left_text < right_text)


def _text(value: Any) -> str:
    return "" if value is None else str(value).lower()


def _dates(cell: Any, value: Any):
    left, right = parse_date(cell), parse_date(value)
    if left is None or right is None:
        return None, None
    return left.replace(tzinfo=None), right.replace(tzinfo=None)


def _equals(cell: Any, value: Any) -> bool:
    return _compare(cell, value) == 0


def _ordered(expected: Callable[[int], bool]) -> Callable[[Any, Any], bool]:
    def predicate(cell: Any, value: Any) -> bool:
        result = _compare(cell, value)
        return result is not None and expected(result)
    return predicate


def _date_after(cell: Any, value: Any) -> bool:
    left, right = _dates(cell, value)
    return left is not None and left > right


def _date_before(cell: Any, value: Any) -> bool:
    left, right = _dates(cell, value)
    return left is not None and left < right


def _date_equals(cell: Any, value: Any) -> bool:
    left, right = _dates(cell, value)
    return left is not None and left.date() == right.date()


def _year_equals(cell: Any, value: Any) -> bool:
    year = parse_number(value)
    if year is None:
        return False
    # Plain year columns hold numbers such as 2024
    number = parse_number(cell)
    if number is not None:
        return int(number) == int(year)
    cell_date = parse_date(cell)
    return cell_date is not None and cell_date.year == int(year)


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "equals": _equals,
    "contains": lambda cell, value: _text(value) in _text(cell),
    "greater_than": _ordered(lambda result: result > 0),
    "less_than": _ordered(lambda result: result < 0),
    "greater_equal": _ordered(lambda result: result >= 0),
    "less_equal": _ordered(lambda result: result <= 0),
    "starts_with": lambda cell, value: _text(cell).startswith(_text(value)),
    "ends_with": lambda cell, value: _text(cell).endswith(_text(value)),
    "date_after": _date_after,
    "date_before": _date_before,
    "date_equals": _date_equals,
    "year_equals": _year_equals,
}


def resolve_filter_column(
    query_filter: QueryFilter,
    columns: List[str],
    column_types: Dict[str, str]
) -> Optional[str]:
    """
    Find the column a filter applies to.

    Date operators naming an absent column (e.g. "year") fall back to
    the first date-typed column.
    """
    if query_filter.column in columns:
        return query_filter.column
    if query_filter.operator in DATE_OPERATORS:
        for column in columns:
            if column_types.get(column) == "date":
                return column
    return None


def apply_filters(
    records: List[Record],
    filters: List[QueryFilter],
    column_types: Dict[str, str]
) -> List[Record]:
    if not filters or not records:
        return records
    columns = list(records[0].keys())

    for query_filter in filters:
        predicate = OPERATORS.get(query_filter.operator)
        if predicate is None:
            logger.warning(f"Unknown filter operator '{query_filter.operator}', passing all rows")
            continue
        column = resolve_filter_column(query_filter, columns, column_types)
        if column is None:
            logger.warning(f"Filter column '{query_filter.column}' not found, skipping filter")
            continue
        records = [
            record for record in records
            if predicate(record.get(column), query_filter.value)
        ]
    return records


# ============================================================================
# Grouping & Aggregation
# ============================================================================

def _numeric_values(rows: List[Record], column: str) -> List[float]:
    values = []
    for row in rows:
        number = parse_number(row.get(column))
        if number is not None:
            values.append(number)
    return values


def aggregate(rows: List[Record], aggregation: Aggregation) -> Any:
    """Compute one aggregate; non-numeric values are ignored except by count"""
    if aggregation.function == "count":
        return len(rows)
    values = _numeric_values(rows, aggregation.column)
    if aggregation.function == "sum":
        return sum(values)
    if not values:
        return None
    if aggregation.function == "avg":
        return sum(values) / len(values)
    if aggregation.function == "max":
        return max(values)
    return min(values)


def group_and_aggregate(
    records: List[Record],
    group_by: Optional[List[str]],
    aggregations: List[Aggregation]
) -> List[Record]:
    """
    Group rows by a composite key and compute aggregates per group.

    Groups keep first-seen order. Without group columns, the whole
    input forms one group.
    """
    if not group_by:
        groups = {"": records}
    else:
        groups: Dict[str, List[Record]] = {}
        for record in records:
            key = GROUP_KEY_SEPARATOR.join(str(record.get(column)) for column in group_by)
            groups.setdefault(key, []).append(record)

    results = []
    for rows in groups.values():
        result: Record = {}
        if group_by and rows:
            for column in group_by:
                result[column] = rows[0].get(column)
        for aggregation in aggregations:
            result[aggregation.output_name] = aggregate(rows, aggregation)
        results.append(result)
    return results


# ============================================================================
# Ordering, Limit, Selection
# ============================================================================

def _sort_key(value: Any):
    if value is None:
        return (1, 0, 0)
    number = parse_number(value)
    if number is not None:
        return (0, 0, number)
    if isinstance(value, datetime):
        return (0, 1, value.replace(tzinfo=None).timestamp())
    return (0, 2, str(value))


def apply_order(records: List[Record], column: str, direction: str = "asc") -> List[Record]:
    """Stable sort on one column; missing values always sort last"""
    present = [record for record in records if record.get(column) is not None]
    missing = [record for record in records if record.get(column) is None]
    ordered = sorted(present, key=lambda record: _sort_key(record.get(column)),
                     reverse=direction == "desc")
    return ordered + missing


def select_columns(records: List[Record], select: List[str]) -> List[Record]:
    if not select or "*" in select:
        return records
    return [
        {column: record[column] for column in select if column in record}
        for record in records
    ]


def execute_structured_query(
    records: List[Record],
    query: StructuredQuery,
    column_types: Dict[str, str]
) -> List[Record]:
    """
    Run a structured query over typed records.

    Stages run in fixed order: filter, group/aggregate, order, limit,
    then selection (skipped when aggregates were computed).

    Args:
        records: Typed records to query
        query: Structured query
        column_types: Inferred type per column

    Returns:
        Resulting records
    """
    results = apply_filters(records, query.filters, column_types)

    aggregated = bool(query.aggregations)
    if aggregated:
        results = group_and_aggregate(results, query.groupBy, query.aggregations)
    elif query.groupBy:
        # Grouping without aggregates yields one count per group
        results = group_and_aggregate(results, query.groupBy, [Aggregation(function="count")])
        aggregated = True

    if query.orderBy:
        results = apply_order(results, query.orderBy.column, query.orderBy.direction)

    if query.limit is not None and query.limit >= 0:
        results = results[:query.limit]

    if not aggregated:
        results = select_columns(results, query.select)

    return results
