"""Reference-range parsing and indicator status assessment."""

import re
from typing import Optional, Tuple

from medparse.models.indicators import NumericalIndicator

RANGE_PATTERN = re.compile(
    r"([-+]?\d+(?:\.\d+)?)\s*(?:-|~|～|—|至)\s*([-+]?\d+(?:\.\d+)?)"
)


def parse_range(normal_range: str) -> Optional[Tuple[float, float]]:
    """Parse a printed reference range such as ``3.5-5.5`` or ``4~10``."""
    match = RANGE_PATTERN.search(normal_range or "")
    if not match:
        return None
    low, high = float(match.group(1)), float(match.group(2))
    return (low, high) if low <= high else (high, low)


def assess_status(indicator: NumericalIndicator) -> str:
    """Reported status, or one derived from the printed range when reported normal."""
    if indicator.status != "normal":
        return indicator.status
    bounds = parse_range(indicator.normal_range)
    if bounds is None:
        return "normal"
    try:
        value = float(indicator.value)
    except (TypeError, ValueError):
        return "normal"
    low, high = bounds
    if value < low:
        return "low"
    if value > high:
        return "high"
    return "normal"
