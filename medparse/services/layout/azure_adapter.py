"""Adapter for Azure Computer Vision Read API payloads.

Maps ``analyzeResult.readResults[]`` onto RawOCRPage models. Extra fields are
ignored and word-level confidence is optional. Anything that cannot be mapped
is skipped with a warning rather than raised.
"""

from typing import Any, List, Mapping, Optional

import structlog
from pydantic import ValidationError

from medparse.models.ocr import PageMeta, RawOCRPage, RawTextFragment
from medparse.utils.exceptions import MalformedGeometryError

logger = structlog.get_logger()

SUCCEEDED = "succeeded"


def parse_azure_read_result(raw: Any) -> List[RawOCRPage]:
    """Convert a raw Read API response into pages for the normalizer.

    Args:
        raw: Decoded JSON body of the Read API "get result" call.

    Returns:
        Pages in provider order, numbered by position (1-based).
        An unusable payload yields an empty list.
    """
    if not isinstance(raw, Mapping):
        logger.warning("ocr_payload_not_object", payload_type=type(raw).__name__)
        return []

    status = raw.get("status")
    if status is not None and status != SUCCEEDED:
        logger.warning("ocr_status_not_succeeded", status=status)
        return []

    analyze_result = raw.get("analyzeResult") or {}
    read_results = (
        analyze_result.get("readResults") if isinstance(analyze_result, Mapping) else None
    )
    if not isinstance(read_results, list) or not read_results:
        logger.warning("ocr_payload_missing_read_results")
        return []

    pages: List[RawOCRPage] = []
    for position, raw_page in enumerate(read_results, start=1):
        try:
            pages.append(_parse_page(raw_page, position))
        except MalformedGeometryError as e:
            logger.warning("page_skipped", page=position, reason=str(e))

    logger.debug(
        "azure_payload_adapted",
        model_version=analyze_result.get("modelVersion", "unknown"),
        pages=len(pages),
    )
    return pages


def _parse_page(raw_page: Any, position: int) -> RawOCRPage:
    if not isinstance(raw_page, Mapping):
        raise MalformedGeometryError("page entry is not an object")

    width = _as_number(raw_page.get("width"))
    height = _as_number(raw_page.get("height"))
    if width is None or height is None:
        raise MalformedGeometryError("page is missing width or height")

    meta = PageMeta(
        page_number=position,
        width_px=max(width, 0.0),
        height_px=max(height, 0.0),
        rotation_angle_degrees=_as_number(raw_page.get("angle")) or 0.0,
        unit=str(raw_page.get("unit") or "pixel"),
    )

    fragments: List[RawTextFragment] = []
    raw_lines = raw_page.get("lines") or []
    if not isinstance(raw_lines, list):
        raw_lines = []

    for line_index, raw_line in enumerate(raw_lines):
        fragment = _parse_line(raw_line)
        if fragment is None:
            logger.warning(
                "fragment_skipped",
                page=position,
                line=line_index,
                reason="malformed boundingBox",
            )
            continue
        fragments.append(fragment)

    if not fragments:
        logger.warning("page_has_no_lines", page=position)

    return RawOCRPage(meta=meta, fragments=fragments)


def _parse_line(raw_line: Any) -> Optional[RawTextFragment]:
    if not isinstance(raw_line, Mapping):
        return None

    quad = raw_line.get("boundingBox")
    if not isinstance(quad, list):
        return None
    numbers = [_as_number(v) for v in quad]
    if len(numbers) != 8 or any(n is None for n in numbers):
        return None

    confidences: List[float] = []
    for word in raw_line.get("words") or []:
        if not isinstance(word, Mapping):
            continue
        confidence = _as_number(word.get("confidence"))
        if confidence is not None:
            confidences.append(min(max(confidence, 0.0), 1.0))

    text = raw_line.get("text")
    try:
        return RawTextFragment(
            text=text if isinstance(text, str) else "",
            quad=numbers,
            word_confidences=confidences,
        )
    except ValidationError:
        return None


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
