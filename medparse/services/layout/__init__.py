"""OCR layout normalization.

Usage:
    from medparse.services.layout import LayoutNormalizer, parse_azure_read_result

    document = LayoutNormalizer().normalize(parse_azure_read_result(raw))
    for line in document.lines:
        print(line.global_index, line.text)
"""

from medparse.services.layout.azure_adapter import parse_azure_read_result
from medparse.services.layout.line_views import (
    apply_line_edits,
    build_analysis_prompt,
    filter_texts_by_confidence,
    high_confidence_texts,
    lines_from_texts,
)
from medparse.services.layout.normalizer import LayoutNormalizer
from medparse.services.layout.quality import compute_quality

__all__ = [
    "LayoutNormalizer",
    "parse_azure_read_result",
    "compute_quality",
    "apply_line_edits",
    "lines_from_texts",
    "high_confidence_texts",
    "filter_texts_by_confidence",
    "build_analysis_prompt",
]
