"""Views over a normalized document and the positional edit round-trip.

Callers correct OCR text line by line and resubmit an array of strings
aligned by ``global_index``. The edit helpers rebuild a document from that
array without a second OCR call; geometry and confidence are carried over
from the original line at the same index.
"""

from typing import List, Optional, Sequence

import structlog

from medparse.models.config import LayoutSettings
from medparse.models.ocr import NormalizedDocument, OrderedLine
from medparse.services.layout.quality import compute_quality
from medparse.utils.exceptions import LineEditMismatchError

logger = structlog.get_logger()


def high_confidence_texts(
    document: NormalizedDocument,
    min_confidence: float = 0.8,
) -> List[str]:
    """Non-empty texts of lines at or above ``min_confidence``."""
    return [
        line.text
        for line in document.lines
        if line.confidence >= min_confidence and line.text
    ]


def filter_texts_by_confidence(
    document: NormalizedDocument,
    min_confidence: float = 0.7,
    filter_short: bool = True,
) -> List[str]:
    """Non-empty texts passing a confidence floor, optionally dropping 1-char noise."""
    texts: List[str] = []
    for line in document.lines:
        if not line.text or line.confidence < min_confidence:
            continue
        if filter_short and len(line.text) < 2:
            continue
        texts.append(line.text)
    return texts


def apply_line_edits(
    document: NormalizedDocument,
    edited_texts: Sequence[str],
    settings: Optional[LayoutSettings] = None,
) -> NormalizedDocument:
    """Substitute caller-corrected text at each global index.

    Args:
        document: Document the edits were made against.
        edited_texts: One string per line, aligned by global index.
        settings: Thresholds for the recomputed quality.

    Returns:
        A new document; the input document is left untouched.

    Raises:
        LineEditMismatchError: If the edit array is not aligned with the lines.
    """
    if len(edited_texts) != len(document.lines):
        raise LineEditMismatchError(len(document.lines), len(edited_texts))

    edited: List[OrderedLine] = []
    changed = 0
    for line, text in zip(document.lines, edited_texts):
        text = text.strip()
        if text != line.text:
            changed += 1
        edited.append(line.model_copy(update={"text": text}))

    logger.info("line_edits_applied", lines=len(edited), changed=changed)

    return NormalizedDocument(
        lines=edited,
        quality=compute_quality(
            edited, total_pages=document.quality.total_pages, settings=settings
        ),
        pages=list(document.pages),
    )


def lines_from_texts(
    texts: Sequence[str],
    settings: Optional[LayoutSettings] = None,
) -> NormalizedDocument:
    """Build a geometry-less document from user-supplied text alone.

    Used when re-analysis starts from edited text and the original OCR
    geometry is no longer available. Every line is attributed to page 1
    and treated as fully trusted.
    """
    lines = [
        OrderedLine(
            global_index=index,
            page_number=1,
            index_within_page=index,
            text=text.strip(),
            confidence=1.0,
        )
        for index, text in enumerate(texts)
    ]
    return NormalizedDocument(
        lines=lines,
        quality=compute_quality(lines, total_pages=1 if lines else 0, settings=settings),
    )


def build_analysis_prompt(document: NormalizedDocument) -> str:
    """Prompt text handing the ordered OCR lines to the analysis LLM."""
    quality = document.quality
    return (
        "以下是从体检报告中通过OCR提取的文本内容：\n\n"
        "文本质量信息：\n"
        f"- 总行数：{quality.total_lines}\n"
        f"- 平均置信度：{quality.average_confidence:.2f}\n"
        f"- 高置信度行：{quality.high_confidence_lines}\n"
        f"- 低置信度行：{quality.low_confidence_lines}\n\n"
        "提取的文本内容：\n"
        f"{document.text}\n\n"
        "请根据以上体检报告文本，提取健康指标并进行专业分析。\n"
        "注意：部分文本可能存在OCR识别错误，请结合上下文进行智能纠正。\n"
    )
