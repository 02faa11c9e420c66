"""Column type inference over untyped tabular samples"""
import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ..config import settings

# Enumeration order doubles as the tie-break order
TYPE_ORDER = ("string", "number", "date", "boolean")

NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
DATE_PATTERNS = (
    (re.compile(r"^\d{4}-\d{2}-\d{2}"), "%Y-%m-%d"),
    (re.compile(r"^\d{2}/\d{2}/\d{4}$"), "%m/%d/%Y"),
    (re.compile(r"^\d{2}-\d{2}-\d{4}$"), "%m-%d-%Y"),
)


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a value that represents a finite number in full.

    Returns:
        The number (int when integral text), or None
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        if not math.isfinite(number):
            return None
        return value if isinstance(value, int) else number

    text = str(value).strip()
    if not NUMBER_PATTERN.match(text):
        return None
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    number = float(text)
    return number if math.isfinite(number) else None


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse a value matching one of the supported date layouts.

    Supported: YYYY-MM-DD (optionally followed by an ISO time), MM/DD/YYYY, MM-DD-YYYY.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if value is None or isinstance(value, (bool, int, float)):
        return None

    text = str(value).strip()
    for pattern, fmt in DATE_PATTERNS:
        if not pattern.match(text):
            continue
        try:
            if fmt == "%Y-%m-%d" and len(text) > 10:
                return datetime.fromisoformat(text.replace("Z", "+00:00"))
            return datetime.strptime(text, fmt)
        except ValueError:
            return None
    return None


def classify_value(value: Any) -> str:
    """Classify one non-empty value by priority boolean > number > date > string"""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return "boolean"
    if parse_number(value) is not None:
        return "number"
    if parse_date(value) is not None:
        return "date"
    return "string"


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def sample_values(values: Iterable[Any], limit: Optional[int] = None) -> List[Any]:
    """Take up to `limit` non-empty values in original order"""
    limit = limit or settings.TYPE_SAMPLE_SIZE
    sample = []
    for value in values:
        if is_empty(value):
            continue
        sample.append(value)
        if len(sample) >= limit:
            break
    return sample


def infer_type(values: Iterable[Any], limit: Optional[int] = None) -> str:
    """
    Infer the semantic type of a column from sampled values.

    The plurality type across the sample wins; ties resolve in the
    order string, number, date, boolean. Empty samples yield "string".

    Args:
        values: Raw cell values of a column
        limit: Sample size (defaults to TYPE_SAMPLE_SIZE)

    Returns:
        One of "string", "number", "date", "boolean"
    """
    counts: Dict[str, int] = {type_name: 0 for type_name in TYPE_ORDER}
    for value in sample_values(values, limit):
        counts[classify_value(value)] += 1

    best = "string"
    for type_name in TYPE_ORDER:
        if counts[type_name] > counts[best]:
            best = type_name
    return best


def quick_infer_type(values: Iterable[Any]) -> str:
    """Infer from the first few values only"""
    return infer_type(values, limit=settings.QUICK_SAMPLE_SIZE)


def convert_value(value: Any, column_type: str) -> Any:
    """Convert a raw cell to the Python value for its column type"""
    if is_empty(value):
        return None
    if column_type == "number":
        return parse_number(value)
    if column_type == "date":
        return parse_date(value)
    if column_type == "boolean":
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return None
    return value if isinstance(value, str) else str(value)
