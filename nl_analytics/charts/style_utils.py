"""
Chart styling utilities for deterministic color assignment.
The same index always maps to the same color.
"""
from typing import List

COLOR_PALETTE = [
    "#14b8a6",  # Teal
    "#f97316",  # Orange
    "#0ea5e9",  # Blue
    "#f43f5e",  # Red/Pink
    "#a855f7",  # Purple
    "#10b981",  # Green
    "#8b5cf6",  # Violet
    "#ec4899"   # Pink
]


def get_color_for_index(index: int) -> str:
    """
    Get color for a given index (wraps around if index > palette size).

    Args:
        index: Zero-based index

    Returns:
        Hex color string
    """
    return COLOR_PALETTE[index % len(COLOR_PALETTE)]


def hex_to_rgba(hex_color: str, alpha: float) -> str:
    """Convert '#rrggbb' to an rgba() string"""
    value = hex_color.lstrip("#")
    red, green, blue = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return f"rgba({red}, {green}, {blue}, {alpha})"


def background_color(index: int, alpha: float = 0.8) -> str:
    return hex_to_rgba(get_color_for_index(index), alpha)


def border_color(index: int) -> str:
    return hex_to_rgba(get_color_for_index(index), 1)


def generate_colors(count: int, alpha: float = 0.8) -> List[str]:
    """One color per row or dataset, cycling through the palette"""
    return [background_color(index, alpha) for index in range(count)]


def should_show_legend(chart_type: str, series_count: int) -> bool:
    """
    Pie charts always show a legend; other charts only when
    more than one series needs distinguishing.
    """
    if chart_type.lower() in ("pie", "doughnut"):
        return True
    return series_count > 1
