"""OCR layout normalizer.

Rebuilds human reading order from unordered, position-tagged OCR fragments:
- Column detection: a fixed midline split with a left bias (two columns max)
- Row banding: fragments whose tops are within a tolerance share a row
  and are ordered left to right
- Indexing: per-page index plus a global index continuous across pages

Pages are processed independently and concatenated in input order. A page
that declares no width is read as a single column; normalization never fails
on provider geometry and never drops a fragment.
"""

from functools import cmp_to_key
from typing import List, Optional, Sequence

import structlog

from medparse.models.config import LayoutSettings
from medparse.models.ocr import (
    NormalizedDocument,
    OrderedLine,
    PageMeta,
    RawOCRPage,
    RawTextFragment,
)
from medparse.services.layout.quality import compute_quality

logger = structlog.get_logger()

LEFT_COLUMN = 0
RIGHT_COLUMN = 1


class LayoutNormalizer:
    """Turns raw OCR pages into an ordered line stream with quality metrics."""

    def __init__(self, settings: Optional[LayoutSettings] = None) -> None:
        """Initialize normalizer.

        Args:
            settings: Row/column tolerances and confidence thresholds.
        """
        self.settings = settings or LayoutSettings()

    def normalize(self, pages: Sequence[RawOCRPage]) -> NormalizedDocument:
        """Order the lines of every page and index them globally.

        Args:
            pages: Provider pages in document order.

        Returns:
            NormalizedDocument whose ``lines[i].global_index == i``.
        """
        lines: List[OrderedLine] = []
        metas: List[PageMeta] = []

        for page in pages:
            if page.fragments and page.meta.width_px <= 0:
                logger.warning(
                    "page_geometry_missing",
                    page=page.meta.page_number,
                    fragments=len(page.fragments),
                )

            metas.append(page.meta)
            ordered = self.order_fragments(page.fragments, page.meta.width_px)

            if not ordered:
                logger.debug("page_has_no_lines", page=page.meta.page_number)

            for index_within_page, fragment in enumerate(ordered):
                x, y = fragment.origin
                lines.append(
                    OrderedLine(
                        global_index=len(lines),
                        page_number=page.meta.page_number,
                        index_within_page=index_within_page,
                        text=fragment.text.strip(),
                        origin_x=x,
                        origin_y=y,
                        quad=list(fragment.quad),
                        confidence=fragment.confidence,
                    )
                )

        quality = compute_quality(lines, total_pages=len(metas), settings=self.settings)

        logger.info(
            "document_normalized",
            pages=len(metas),
            lines=len(lines),
            average_confidence=round(quality.average_confidence, 3),
        )

        return NormalizedDocument(
            lines=lines,
            quality=quality,
            pages=metas,
        )

    def order_fragments(
        self,
        fragments: Sequence[RawTextFragment],
        page_width: float,
    ) -> List[RawTextFragment]:
        """Reading order for one page: left column, then right column.

        Args:
            fragments: Fragments of a single page, in any order.
            page_width: Declared page width; <= 0 disables column detection.

        Returns:
            Fragments in reading order.
        """
        left: List[RawTextFragment] = []
        right: List[RawTextFragment] = []
        for fragment in fragments:
            if self.detect_column(fragment, page_width) == RIGHT_COLUMN:
                right.append(fragment)
            else:
                left.append(fragment)

        key = cmp_to_key(self._compare_positions)
        return sorted(left, key=key) + sorted(right, key=key)

    def detect_column(self, fragment: RawTextFragment, page_width: float) -> int:
        """Classify a fragment as left (0) or right (1) column.

        A fragment whose left edge lies past ``width/2 - column_bias_px``
        belongs to the right column.
        """
        if page_width <= 0:
            return LEFT_COLUMN
        x, _ = fragment.origin
        if x > page_width / 2 - self.settings.column_bias_px:
            return RIGHT_COLUMN
        return LEFT_COLUMN

    def _compare_positions(self, a: RawTextFragment, b: RawTextFragment) -> float:
        ax, ay = a.origin
        bx, by = b.origin
        dy = ay - by
        if abs(dy) > self.settings.row_tolerance_px:
            return dy
        # Same visual row
        return ax - bx
