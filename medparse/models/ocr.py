"""OCR data models for the layout normalizer.

This module defines the data structures for:
- Raw fragments and page geometry as delivered by an OCR provider
- Ordered lines produced by reading-order reconstruction
- Aggregate parse quality over a normalized document
"""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RawTextFragment(BaseModel):
    """One OCR-detected line on one page, before reading-order reconstruction."""

    text: str = Field(default="", description="Recognized text of the line")
    quad: List[float] = Field(
        ...,
        description="4 corner points, clockwise, as x1,y1,x2,y2,x3,y3,x4,y4",
    )
    word_confidences: List[float] = Field(
        default_factory=list,
        description="Per-word recognition confidence (0.0-1.0), may be empty",
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("quad")
    @classmethod
    def validate_quad(cls, v: List[float]) -> List[float]:
        if len(v) != 8:
            raise ValueError(f"quad must hold exactly 8 numbers, got {len(v)}")
        return v

    @field_validator("word_confidences")
    @classmethod
    def validate_word_confidences(cls, v: List[float]) -> List[float]:
        for confidence in v:
            if not 0.0 <= confidence <= 1.0:
                raise ValueError(f"word confidence out of range: {confidence}")
        return v

    @property
    def confidence(self) -> float:
        """Mean word confidence; 1.0 when the provider omitted word data."""
        if not self.word_confidences:
            return 1.0
        return sum(self.word_confidences) / len(self.word_confidences)

    @property
    def origin(self) -> Tuple[float, float]:
        """Top-left corner of the bounding quadrilateral."""
        return min(self.quad[0::2]), min(self.quad[1::2])


class PageMeta(BaseModel):
    """Geometry of one OCR page, shared by every fragment on it."""

    page_number: int = Field(..., ge=1, description="1-based page number")
    width_px: float = Field(default=0.0, ge=0.0, description="Page width")
    height_px: float = Field(default=0.0, ge=0.0, description="Page height")
    rotation_angle_degrees: float = Field(
        default=0.0, description="Text angle reported by the provider"
    )
    unit: str = Field(default="pixel", description="Unit of the coordinates")

    model_config = ConfigDict(frozen=True)


class RawOCRPage(BaseModel):
    """One page of provider output: geometry plus unordered fragments."""

    meta: PageMeta
    fragments: List[RawTextFragment] = Field(default_factory=list)


class OrderedLine(BaseModel):
    """A line in human reading order.

    ``global_index`` equals the line's position in the document's line list,
    so callers can address a line (and edit it) by position alone.
    """

    global_index: int = Field(..., ge=0)
    page_number: int = Field(..., ge=1)
    index_within_page: int = Field(..., ge=0)
    text: str
    origin_x: float = 0.0
    origin_y: float = 0.0
    quad: List[float] = Field(default_factory=list)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return not self.text


class ParseQuality(BaseModel):
    """Confidence summary over all lines of one normalized document.

    Empty lines are counted separately and excluded from the confidence
    buckets and from ``average_confidence``.
    """

    total_pages: int = Field(default=0, ge=0)
    total_lines: int = Field(default=0, ge=0)
    empty_lines: int = Field(default=0, ge=0)
    high_confidence_lines: int = Field(default=0, ge=0)
    medium_confidence_lines: int = Field(default=0, ge=0)
    low_confidence_lines: int = Field(default=0, ge=0)
    average_confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "total_pages": 2,
                "total_lines": 7,
                "empty_lines": 0,
                "high_confidence_lines": 6,
                "medium_confidence_lines": 1,
                "low_confidence_lines": 0,
                "average_confidence": 0.96,
            }
        }
    )


class NormalizedDocument(BaseModel):
    """Result of one normalize call: ordered lines plus their quality."""

    lines: List[OrderedLine] = Field(default_factory=list)
    quality: ParseQuality = Field(default_factory=ParseQuality)
    pages: List[PageMeta] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when nothing was detected (distinct from a parse failure)."""
        return not self.lines

    def texts(self) -> List[str]:
        """Non-empty line texts in reading order."""
        return [line.text for line in self.lines if line.text]

    @property
    def text(self) -> str:
        return "\n".join(self.texts())

    def as_tuple(self) -> Tuple[List[OrderedLine], ParseQuality]:
        return self.lines, self.quality
