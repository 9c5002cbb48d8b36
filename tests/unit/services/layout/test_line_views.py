"""Unit tests for quality aggregation, line views and the edit round-trip."""

import pytest

from medparse.models.config import LayoutSettings
from medparse.models.ocr import NormalizedDocument, OrderedLine, PageMeta
from medparse.services.layout.line_views import (
    apply_line_edits,
    build_analysis_prompt,
    filter_texts_by_confidence,
    high_confidence_texts,
    lines_from_texts,
)
from medparse.services.layout.quality import compute_quality
from medparse.utils.exceptions import LineEditMismatchError


def make_line(index, text, confidence, page=1):
    return OrderedLine(
        global_index=index,
        page_number=page,
        index_within_page=index,
        text=text,
        origin_x=10.0,
        origin_y=20.0 * index,
        quad=[10, 20 * index, 90, 20 * index, 90, 20 * index + 15, 10, 20 * index + 15],
        confidence=confidence,
    )


@pytest.fixture
def document():
    lines = [
        make_line(0, "体检报告", 0.98),
        make_line(1, "白细胞 6.2", 0.85),
        make_line(2, "", 0.4),
        make_line(3, "x", 0.95),
        make_line(4, "血糖 9.1 ↑", 0.5),
    ]
    return NormalizedDocument(
        lines=lines,
        quality=compute_quality(lines, total_pages=1),
        pages=[PageMeta(page_number=1, width_px=1000, height_px=1400)],
    )


class TestComputeQuality:
    def test_buckets_exclude_empty_lines(self, document):
        quality = document.quality

        assert quality.total_lines == 5
        assert quality.empty_lines == 1
        assert quality.high_confidence_lines == 2
        assert quality.medium_confidence_lines == 1
        assert quality.low_confidence_lines == 1

    def test_average_is_simple_mean_over_non_empty_lines(self, document):
        expected = (0.98 + 0.85 + 0.95 + 0.5) / 4

        assert document.quality.average_confidence == pytest.approx(expected)

    def test_bucket_boundaries_are_inclusive(self):
        lines = [make_line(0, "a", 0.9), make_line(1, "b", 0.7), make_line(2, "c", 0.69)]

        quality = compute_quality(lines)

        assert (
            quality.high_confidence_lines,
            quality.medium_confidence_lines,
            quality.low_confidence_lines,
        ) == (1, 1, 1)

    def test_empty_input(self):
        quality = compute_quality([])

        assert quality.total_lines == 0
        assert quality.average_confidence == 0.0

    def test_custom_thresholds(self):
        settings = LayoutSettings(high_confidence=0.99, medium_confidence=0.5)

        quality = compute_quality([make_line(0, "a", 0.95)], settings=settings)

        assert quality.medium_confidence_lines == 1

    def test_thresholds_must_be_ordered(self):
        with pytest.raises(ValueError):
            LayoutSettings(high_confidence=0.6, medium_confidence=0.8)


class TestTextViews:
    def test_high_confidence_texts(self, document):
        assert high_confidence_texts(document) == ["体检报告", "白细胞 6.2", "x"]

    def test_filter_drops_short_noise(self, document):
        assert filter_texts_by_confidence(document) == ["体检报告", "白细胞 6.2"]

    def test_filter_keeps_short_lines_on_request(self, document):
        assert filter_texts_by_confidence(document, 0.3, filter_short=False) == [
            "体检报告",
            "白细胞 6.2",
            "x",
            "血糖 9.1 ↑",
        ]

    def test_document_text_skips_empty_lines(self, document):
        assert document.text == "体检报告\n白细胞 6.2\nx\n血糖 9.1 ↑"


class TestApplyLineEdits:
    def test_substitutes_text_at_same_index(self, document):
        edits = ["体检报告", "白细胞 6.8", "", "", "血糖 9.1 ↑"]

        edited = apply_line_edits(document, edits)

        assert [line.global_index for line in edited.lines] == [0, 1, 2, 3, 4]
        assert edited.lines[1].text == "白细胞 6.8"
        assert edited.lines[1].quad == document.lines[1].quad
        assert edited.lines[1].confidence == document.lines[1].confidence

    def test_original_document_is_untouched(self, document):
        apply_line_edits(document, ["a", "b", "c", "d", "e"])

        assert document.lines[0].text == "体检报告"

    def test_quality_is_recomputed(self, document):
        edited = apply_line_edits(document, ["体检报告", "白细胞 6.2", "补录", "", "血糖"])

        assert edited.quality.empty_lines == 1
        assert edited.quality.total_pages == 1

    def test_length_mismatch_raises(self, document):
        with pytest.raises(LineEditMismatchError) as exc_info:
            apply_line_edits(document, ["only one"])

        assert exc_info.value.expected == 5
        assert exc_info.value.received == 1


class TestLinesFromTexts:
    def test_builds_trusted_single_page_document(self):
        document = lines_from_texts([" 总胆固醇 6.1 ", "甘油三酯 1.2"])

        assert [line.global_index for line in document.lines] == [0, 1]
        assert document.texts() == ["总胆固醇 6.1", "甘油三酯 1.2"]
        assert all(line.confidence == 1.0 for line in document.lines)
        assert document.quality.high_confidence_lines == 2
        assert document.quality.total_pages == 1

    def test_no_texts_is_empty_document(self):
        document = lines_from_texts([])

        assert document.is_empty
        assert document.quality.total_pages == 0


class TestBuildAnalysisPrompt:
    def test_prompt_carries_text_and_quality(self, document):
        prompt = build_analysis_prompt(document)

        assert "白细胞 6.2" in prompt
        assert "总行数：5" in prompt
        assert f"平均置信度：{document.quality.average_confidence:.2f}" in prompt
