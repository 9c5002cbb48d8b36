"""Unit tests for LayoutNormalizer reading-order reconstruction."""

import random

import pytest

from medparse.models.config import LayoutSettings
from medparse.models.ocr import PageMeta, RawOCRPage, RawTextFragment
from medparse.services.layout.normalizer import (
    LEFT_COLUMN,
    RIGHT_COLUMN,
    LayoutNormalizer,
)


def make_fragment(text, x, y, width=120, height=20, confidences=None):
    return RawTextFragment(
        text=text,
        quad=[x, y, x + width, y, x + width, y + height, x, y + height],
        word_confidences=confidences or [],
    )


def make_page(number, fragments, width=1000.0, height=1400.0):
    return RawOCRPage(
        meta=PageMeta(page_number=number, width_px=width, height_px=height),
        fragments=fragments,
    )


@pytest.fixture
def normalizer():
    return LayoutNormalizer()


class TestIndexStability:
    """global_index matches position regardless of input order"""

    def test_global_index_is_dense_for_shuffled_input(self, normalizer):
        fragments_p1 = [make_fragment(f"p1-{i}", 60, 100 + 40 * i) for i in range(5)]
        fragments_p2 = [make_fragment(f"p2-{i}", 60 + 500 * (i % 2), 100 + 40 * i) for i in range(6)]
        rng = random.Random(7)
        rng.shuffle(fragments_p1)
        rng.shuffle(fragments_p2)

        document = normalizer.normalize([make_page(1, fragments_p1), make_page(2, fragments_p2)])

        assert len(document.lines) == 11
        assert [line.global_index for line in document.lines] == list(range(11))

    def test_index_within_page_restarts_per_page(self, normalizer):
        pages = [
            make_page(1, [make_fragment("a", 60, 100), make_fragment("b", 60, 200)]),
            make_page(2, [make_fragment("c", 60, 100)]),
        ]

        document = normalizer.normalize(pages)

        assert [(l.page_number, l.index_within_page) for l in document.lines] == [
            (1, 0),
            (1, 1),
            (2, 0),
        ]

    def test_order_is_independent_of_input_order(self, normalizer):
        fragments = [
            make_fragment("右上", 600, 80),
            make_fragment("左下", 60, 300),
            make_fragment("左上", 60, 100),
            make_fragment("右下", 600, 260),
        ]

        forward = normalizer.normalize([make_page(1, fragments)])
        backward = normalizer.normalize([make_page(1, list(reversed(fragments)))])

        assert forward.texts() == backward.texts() == ["左上", "左下", "右上", "右下"]


class TestColumnPartition:
    """Left column lines precede right column lines on a page"""

    def test_left_cluster_precedes_right_cluster(self, normalizer):
        width = 1000.0
        left = [make_fragment(f"L{i}", 50, y) for i, y in enumerate([120, 240, 360])]
        right = [make_fragment(f"R{i}", width - 50 - 120, y) for i, y in enumerate([60, 180, 300])]

        document = normalizer.normalize([make_page(1, right + left, width=width)])

        assert document.texts() == ["L0", "L1", "L2", "R0", "R1", "R2"]

    def test_right_column_starting_higher_still_follows_left(self, normalizer):
        fragments = [make_fragment("right-top", 700, 10), make_fragment("left-bottom", 40, 900)]

        document = normalizer.normalize([make_page(1, fragments)])

        assert document.texts() == ["left-bottom", "right-top"]

    def test_midline_bias(self, normalizer):
        # width 1000: right column starts past 1000/2 - 50 = 450
        assert normalizer.detect_column(make_fragment("x", 449, 0), 1000) == LEFT_COLUMN
        assert normalizer.detect_column(make_fragment("x", 450, 0), 1000) == LEFT_COLUMN
        assert normalizer.detect_column(make_fragment("x", 451, 0), 1000) == RIGHT_COLUMN

    def test_unknown_width_means_single_column(self, normalizer):
        assert normalizer.detect_column(make_fragment("x", 900, 0), 0) == LEFT_COLUMN

    def test_zero_width_page_with_height_is_ordered_top_to_bottom(self, normalizer):
        fragments = [make_fragment("second", 800, 300), make_fragment("first", 20, 100)]
        page = make_page(1, fragments, width=0.0, height=1400.0)

        document = normalizer.normalize([page])

        assert document.texts() == ["first", "second"]

    def test_custom_column_bias(self):
        normalizer = LayoutNormalizer(LayoutSettings(column_bias_px=0))

        assert normalizer.detect_column(make_fragment("x", 480, 0), 1000) == LEFT_COLUMN
        assert normalizer.detect_column(make_fragment("x", 501, 0), 1000) == RIGHT_COLUMN


class TestRowTolerance:
    """Fragments within the row tolerance are ordered left to right"""

    def test_same_row_orders_by_x_even_if_lower(self, normalizer):
        lower_left = make_fragment("血红蛋白", 100, 105)
        upper_right = make_fragment("135 g/L", 300, 100)

        document = normalizer.normalize([make_page(1, [upper_right, lower_left])])

        assert document.texts() == ["血红蛋白", "135 g/L"]

    def test_difference_above_tolerance_orders_by_y(self, normalizer):
        lower_left = make_fragment("lower", 100, 111)
        upper_right = make_fragment("upper", 300, 100)

        document = normalizer.normalize([make_page(1, [lower_left, upper_right])])

        assert document.texts() == ["upper", "lower"]

    def test_difference_equal_to_tolerance_is_same_row(self, normalizer):
        left = make_fragment("left", 100, 110)
        right = make_fragment("right", 300, 100)

        document = normalizer.normalize([make_page(1, [right, left])])

        assert document.texts() == ["left", "right"]

    def test_origin_uses_minimum_of_rotated_quad(self, normalizer):
        skewed = RawTextFragment(
            text="skewed",
            quad=[110, 205, 230, 200, 232, 222, 112, 226],
        )

        document = normalizer.normalize([make_page(1, [skewed])])

        line = document.lines[0]
        assert (line.origin_x, line.origin_y) == (110, 200)
        assert line.quad == [110, 205, 230, 200, 232, 222, 112, 226]


class TestConfidence:
    def test_empty_word_confidences_yield_one(self, normalizer):
        document = normalizer.normalize([make_page(1, [make_fragment("no words", 60, 100)])])

        assert document.lines[0].confidence == 1.0

    def test_confidence_is_mean_of_words(self, normalizer):
        fragment = make_fragment("two words", 60, 100, confidences=[0.9, 0.7])

        document = normalizer.normalize([make_page(1, [fragment])])

        assert document.lines[0].confidence == pytest.approx(0.8)

    def test_lines_and_quality_unpack(self, normalizer):
        fragments = [
            make_fragment("clear", 60, 100, confidences=[0.95]),
            make_fragment("blurry", 60, 140, confidences=[0.5]),
        ]

        lines, quality = normalizer.normalize([make_page(1, fragments)]).as_tuple()

        assert [line.text for line in lines] == ["clear", "blurry"]
        assert quality.high_confidence_lines == 1
        assert quality.low_confidence_lines == 1


class TestMalformedInput:
    def test_page_without_geometry_keeps_every_fragment(self, normalizer):
        first = make_page(1, [make_fragment("kept", 60, 100)])
        bare = make_page(
            2,
            [make_fragment("second", 800, 300), make_fragment("first", 20, 100)],
            width=0.0,
            height=0.0,
        )

        document = normalizer.normalize([first, bare])

        assert document.texts() == ["kept", "first", "second"]
        assert [line.global_index for line in document.lines] == [0, 1, 2]
        assert document.quality.total_pages == 2

    def test_default_page_meta_is_read_as_single_column(self, normalizer):
        fragments = [make_fragment(f"line {i}", 900 - 400 * (i % 2), 100 + 40 * i) for i in range(3)]
        page = RawOCRPage(meta=PageMeta(page_number=1), fragments=fragments)

        document = normalizer.normalize([page])

        assert document.texts() == ["line 0", "line 1", "line 2"]

    def test_page_without_fragments_contributes_nothing(self, normalizer):
        document = normalizer.normalize(
            [make_page(1, []), make_page(2, [make_fragment("only", 60, 100)])]
        )

        assert len(document.lines) == 1
        assert document.lines[0].page_number == 2
        assert document.lines[0].global_index == 0

    def test_no_pages_is_empty_document(self, normalizer):
        document = normalizer.normalize([])

        assert document.is_empty
        assert document.quality.total_lines == 0
        assert document.quality.average_confidence == 0.0

    def test_whitespace_text_is_kept_as_empty_line(self, normalizer):
        fragments = [make_fragment("  ", 60, 100), make_fragment(" 尿酸 ", 60, 200)]

        document = normalizer.normalize([make_page(1, fragments)])

        assert [line.text for line in document.lines] == ["", "尿酸"]
        assert document.quality.empty_lines == 1
        assert document.texts() == ["尿酸"]
