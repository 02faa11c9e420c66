"""JSON helpers for records containing database and parsed types"""
import json
import math
from decimal import Decimal
from datetime import datetime, date
from typing import Any


class CustomJSONEncoder(json.JSONEncoder):
    """
    JSON encoder that handles Decimal values from SQL drivers and
    datetime values produced by type conversion.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def json_dumps(obj: Any, **kwargs) -> str:
    """JSON dumps with the custom encoder"""
    return json.dumps(obj, cls=CustomJSONEncoder, **kwargs)


def normalize_value(value: Any) -> Any:
    """Convert a single driver value into a JSON-friendly scalar"""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def normalize_records(obj: Any) -> Any:
    """
    Recursively convert Decimal and NaN values in a data structure.

    Args:
        obj: Data structure to convert (dict, list, or primitive)

    Returns:
        Data structure with Decimals as floats and NaN as None
    """
    if isinstance(obj, dict):
        return {key: normalize_records(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [normalize_records(item) for item in obj]
    return normalize_value(obj)
