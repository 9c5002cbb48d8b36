"""Parse quality aggregation over ordered lines."""

from typing import Optional, Sequence

from medparse.models.config import LayoutSettings
from medparse.models.ocr import OrderedLine, ParseQuality


def compute_quality(
    lines: Sequence[OrderedLine],
    total_pages: int = 0,
    settings: Optional[LayoutSettings] = None,
) -> ParseQuality:
    """Bucket non-empty lines by confidence and average them.

    The average is a plain per-line mean: each line is one editable unit,
    regardless of its length. An empty set averages to 0.0.

    Args:
        lines: Ordered lines of one document.
        total_pages: Number of pages that contributed lines.
        settings: Bucket thresholds (defaults 0.9 / 0.7).

    Returns:
        ParseQuality summary.
    """
    settings = settings or LayoutSettings()

    empty = high = medium = low = 0
    confidence_sum = 0.0

    for line in lines:
        if not line.text:
            empty += 1
            continue
        confidence_sum += line.confidence
        if line.confidence >= settings.high_confidence:
            high += 1
        elif line.confidence >= settings.medium_confidence:
            medium += 1
        else:
            low += 1

    scored = high + medium + low
    average = confidence_sum / scored if scored else 0.0

    return ParseQuality(
        total_pages=total_pages,
        total_lines=len(lines),
        empty_lines=empty,
        high_confidence_lines=high,
        medium_confidence_lines=medium,
        low_confidence_lines=low,
        average_confidence=min(average, 1.0),
    )
