"""
Chart data transformer.

Shapes raw records into canonical ChartData: labels, datasets with
deterministic colors, and formatted summary metrics.
"""
import logging
from datetime import datetime
from decimal import Context, Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from ..errors import TransformationError
from ..models import ChartData, Dataset, Record
from ..query.type_inference import parse_date, parse_number, quick_infer_type
from .style_utils import background_color, border_color, generate_colors, should_show_legend

logger = logging.getLogger(__name__)

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

TIME_SERIES_TYPES = {"line", "area"}
PIE_TYPES = {"pie", "doughnut"}

# Wide enough to quantize any finite float without overflow
_WIDE = Context(prec=400)


# ============================================================================
# Formatting
# ============================================================================

def _round_half_up(value: float, places: int) -> Decimal:
    return Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP, context=_WIDE)


def format_number(value: float) -> str:
    """
    Compact display string for a metric.

    >= 1,000,000 -> "2.3M", >= 1,000 -> "1.5K", otherwise rounded to an integer.
    """
    if value >= 1_000_000:
        return f"{_round_half_up(value / 1_000_000, 1)}M"
    if value >= 1_000:
        return f"{_round_half_up(value / 1_000, 1)}K"
    return str(_round_half_up(value, 0))


def format_percentage(part: float, whole: float) -> str:
    if not whole:
        return "0.0%"
    return f"{_round_half_up(part / whole * 100, 1)}%"


def format_month_year(value: Any) -> str:
    parsed = parse_date(value)
    if parsed is None:
        return _label(value)
    return f"{MONTH_NAMES[parsed.month - 1]} {parsed.year}"


def to_number(value: Any) -> float:
    """Numeric value for plotting; 0 when the value is not numeric"""
    number = parse_number(value)
    return float(number) if number is not None else 0.0


def _label(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _display_value(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# ============================================================================
# Shape detection
# ============================================================================

def column_types_for(records: List[Record]) -> Dict[str, str]:
    """Quick per-column classification from the first few records"""
    columns = list(records[0].keys()) if records else []
    return {column: quick_infer_type(record.get(column) for record in records) for column in columns}


def detect_chart_shape(column_types: Dict[str, str]) -> str:
    """
    Detect the chart shape from column types.

    Precedence: any date column -> time_series; text and numeric
    columns -> categorical; several numeric columns -> numerical;
    two or more columns -> comparative; otherwise generic.
    """
    types = list(column_types.values())
    if "date" in types:
        return "time_series"
    if "string" in types and "number" in types:
        return "categorical"
    if types.count("number") > 1:
        return "numerical"
    if len(types) >= 2:
        return "comparative"
    return "generic"


def _columns_of(column_types: Dict[str, str], column_type: str) -> List[str]:
    return [column for column, value in column_types.items() if value == column_type]


def suggest_chart_type(records: List[Record]) -> str:
    """Suggest a chart type for records a user has not asked to chart in a specific way"""
    if not records:
        return "bar"
    column_types = column_types_for(records)
    numeric = _columns_of(column_types, "number")
    if _columns_of(column_types, "date") and numeric:
        return "line"
    if _columns_of(column_types, "string") and numeric:
        return "pie" if len(records) <= 8 else "bar"
    if len(numeric) >= 2:
        return "scatter"
    return "bar"


# ============================================================================
# Shape builders
# ============================================================================

def _summary_metrics(values: List[float]) -> Dict[str, str]:
    total = sum(values)
    average = total / len(values) if values else 0
    return {
        "Total": format_number(total),
        "Average": format_number(average),
        "Max": format_number(max(values) if values else 0),
        "Min": format_number(min(values) if values else 0),
    }


def build_categorical(
    records: List[Record],
    label_column: str,
    value_column: Optional[str],
    chart_type: str
) -> ChartData:
    labels = [_label(record.get(label_column)) for record in records]
    values = [to_number(record.get(value_column)) if value_column else 0.0 for record in records]

    dataset = Dataset(
        label=value_column or label_column,
        data=values,
        backgroundColor=generate_colors(len(records)),
        borderColor=[border_color(index) for index in range(len(records))],
        borderWidth=1,
    )

    options: Dict[str, Any] = {
        "plugins": {"legend": {"display": should_show_legend(chart_type, 1)}}
    }
    if chart_type in PIE_TYPES:
        total = sum(values)
        options["plugins"] = {
            "legend": {"display": True, "position": "right"},
            "tooltip": {
                "labels": [
                    f"{label}: {_display_value(value)} ({format_percentage(value, total)})"
                    for label, value in zip(labels, values)
                ]
            },
        }

    return ChartData(
        type=chart_type,
        labels=labels,
        datasets=[dataset],
        metrics=_summary_metrics(values),
        rawData=records,
        options=options,
    )


def build_time_series(
    records: List[Record],
    date_column: str,
    value_column: Optional[str],
    chart_type: str
) -> ChartData:
    def sort_key(record: Record):
        parsed = parse_date(record.get(date_column))
        if parsed is None:
            return (1, 0.0)
        return (0, parsed.replace(tzinfo=None).timestamp())

    # sorted() is stable: equal dates keep their input order
    ordered = sorted(records, key=sort_key)
    labels = [format_month_year(record.get(date_column)) for record in ordered]
    values = [to_number(record.get(value_column)) if value_column else 0.0 for record in ordered]

    dataset = Dataset(
        label=value_column or date_column,
        data=values,
        backgroundColor=background_color(0, 0.1),
        borderColor=border_color(0),
        borderWidth=3,
        fill=True,
        tension=0.4,
    )

    total = sum(values)
    change = values[-1] - values[0] if values else 0
    if change > 0:
        trend = "increasing"
    elif change < 0:
        trend = "decreasing"
    else:
        trend = "stable"

    return ChartData(
        type=chart_type,
        labels=labels,
        datasets=[dataset],
        metrics={
            "Total": format_number(total),
            "Average": format_number(total / len(values) if values else 0),
            "Trend": trend,
            "Points": str(len(values)),
        },
        rawData=ordered,
        options={"plugins": {"legend": {"display": False}}},
    )


def build_numerical(records: List[Record], numeric_columns: List[str], chart_type: str) -> ChartData:
    datasets = [
        Dataset(
            label=column,
            data=[to_number(record.get(column)) for record in records],
            backgroundColor=background_color(index),
            borderColor=border_color(index),
        )
        for index, column in enumerate(numeric_columns)
    ]
    return ChartData(
        type=chart_type,
        labels=[f"Item {index + 1}" for index in range(len(records))],
        datasets=datasets,
        metrics={"Columns": str(len(numeric_columns)), "Rows": str(len(records))},
        rawData=records,
        options={"plugins": {"legend": {"display": should_show_legend(chart_type, len(datasets))}}},
    )


def build_generic(records: List[Record], columns: List[str]) -> ChartData:
    label_column, value_columns = columns[0], columns[1:]
    datasets = [
        Dataset(
            label=column,
            data=[to_number(record.get(column)) for record in records],
            backgroundColor=background_color(index),
            borderColor=border_color(index),
        )
        for index, column in enumerate(value_columns)
    ]
    return ChartData(
        type="generic",
        labels=[_label(record.get(label_column)) for record in records],
        datasets=datasets,
        metrics={"Columns": str(len(columns)), "Rows": str(len(records))},
        rawData=records,
    )


def build_scatter(records: List[Record], x_column: str, y_column: str) -> ChartData:
    xs = [to_number(record.get(x_column)) for record in records]
    ys = [to_number(record.get(y_column)) for record in records]
    dataset = Dataset(
        label=f"{y_column} vs {x_column}",
        data=ys,
        backgroundColor=background_color(0),
        borderColor=border_color(0),
    )
    return ChartData(
        type="scatter",
        labels=[_display_value(x) for x in xs],
        datasets=[dataset],
        metrics={"Points": str(len(records)), "X": x_column, "Y": y_column},
        rawData=records,
        options={"points": [{"x": x, "y": y} for x, y in zip(xs, ys)]},
    )


# ============================================================================
# Entry point
# ============================================================================

def _validate_records(records: Any) -> List[Record]:
    if not isinstance(records, list) or not records:
        raise TransformationError("No records to transform")
    if not all(isinstance(record, dict) for record in records):
        raise TransformationError("Records must be column-to-value mappings")
    if not records[0]:
        raise TransformationError("Records have no columns")
    return records


def transform(records: List[Record], chart_type: Optional[str] = None) -> ChartData:
    """
    Transform raw records into chart data.

    Args:
        records: Uniform result records
        chart_type: Requested chart type; detected from the data when omitted

    Returns:
        ChartData whose datasets all match the label count

    Raises:
        TransformationError: If records are empty or malformed
    """
    records = _validate_records(records)
    columns = list(records[0].keys())
    column_types = column_types_for(records)

    text_columns = _columns_of(column_types, "string")
    numeric_columns = _columns_of(column_types, "number")
    date_columns = _columns_of(column_types, "date")

    def first_value_column(exclude: str) -> Optional[str]:
        for column in numeric_columns:
            if column != exclude:
                return column
        others = [column for column in columns if column != exclude]
        return others[0] if others else None

    def categorical(requested: str, positional: bool = False) -> ChartData:
        if not positional and text_columns and numeric_columns:
            return build_categorical(records, text_columns[0], numeric_columns[0], requested)
        value_column = columns[1] if len(columns) > 1 else None
        return build_categorical(records, columns[0], value_column, requested)

    if chart_type:
        requested = chart_type.lower()
        if requested in TIME_SERIES_TYPES and date_columns:
            shape = "time_series"
        elif requested == "scatter" and len(numeric_columns) >= 2:
            shape = "scatter"
        else:
            shape = "categorical"
    else:
        requested = None
        shape = detect_chart_shape(column_types)

    logger.debug(f"Transforming {len(records)} records as {shape} (requested={chart_type})")

    if shape == "time_series":
        date_column = date_columns[0]
        return build_time_series(records, date_column, first_value_column(date_column), requested or "time_series")
    if shape == "scatter":
        return build_scatter(records, numeric_columns[0], numeric_columns[1])
    if shape == "categorical":
        return categorical(requested or "categorical")
    if shape == "numerical":
        return build_numerical(records, numeric_columns, "numerical")
    if shape == "comparative":
        return categorical("comparative", positional=True)
    return build_generic(records, columns)


def to_label_value_pairs(chart_data: ChartData, dataset_index: int = 0) -> List[tuple]:
    """Recover (label, value) pairs from chart data"""
    dataset = chart_data.datasets[dataset_index]
    return list(zip(chart_data.labels, dataset.data))
