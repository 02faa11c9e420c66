"""Visualization config generation: axis role bindings from data shape"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..models import ChartConfig, ChartData, QueryAnalysis, Record
from ..utils.json_encoder import json_dumps

logger = logging.getLogger(__name__)

AXIS_CHART_TYPES = {"bar", "line", "area"}


def prepare_visualization_data(chart_type: str, records: List[Record]) -> List[Record]:
    """
    Reshape records for the renderer.

    Pie rows become {name, value}, scatter rows become {x, y}, using the
    first two columns. Other chart types keep records unchanged.
    """
    if not records:
        return []
    keys = list(records[0].keys())
    if len(keys) < 2:
        return records
    first, second = keys[0], keys[1]
    if chart_type == "pie":
        return [{"name": record.get(first), "value": record.get(second)} for record in records]
    if chart_type == "scatter":
        return [{"x": record.get(first), "y": record.get(second)} for record in records]
    return records


def generate_chart_config(chart_type: str, data: List[Record]) -> ChartConfig:
    """
    Derive axis bindings for a chart type.

    Args:
        chart_type: bar, line, area, pie or scatter
        data: Records as prepared for the renderer

    Returns:
        Chart config naming columns present in the data
    """
    if chart_type == "pie":
        return ChartConfig(dataKey="value", nameKey="name")
    if chart_type == "scatter":
        return ChartConfig(xAxisDataKey="x", yAxisDataKey="y")

    keys = list(data[0].keys()) if data else []
    if chart_type not in AXIS_CHART_TYPES:
        logger.debug(f"No specific bindings for chart type '{chart_type}', using axis layout")
    return ChartConfig(
        xAxisDataKey=keys[0] if len(keys) > 0 else None,
        yAxisDataKey=keys[1] if len(keys) > 1 else None,
    )


def should_create_visualization(analysis: Optional[QueryAnalysis], results: List[Record]) -> bool:
    """
    Decide whether a result is worth charting.

    Empty results never are. A metrics query answered by one
    aggregate row is reported as a number, not a chart.
    """
    if not results:
        return False
    if analysis and analysis.queryType == "metrics" and len(results) == 1:
        return False
    return True


def summarize_chart(chart_data: ChartData) -> str:
    """One-line text description of a chart"""
    parts = [
        f"{chart_data.type} chart with {len(chart_data.labels)} data points "
        f"across {len(chart_data.datasets)} dataset(s)"
    ]
    if chart_data.metrics:
        parts.append(", ".join(f"{name}: {value}" for name, value in chart_data.metrics.items()))
    return ". ".join(parts)


def export_chart_json(chart_data: ChartData, config: Optional[ChartConfig] = None) -> str:
    """Serialize a chart and its bindings as a standalone JSON document"""
    document = {
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "chart": chart_data.model_dump(),
        "config": config.model_dump(exclude_none=True) if config else {},
        "summary": summarize_chart(chart_data),
    }
    return json_dumps(document, indent=2)
