"""Unit tests for the Azure Read payload adapter."""

import pytest

from medparse.services.layout.azure_adapter import parse_azure_read_result


def azure_line(text, x, y, confidences=(0.99,)):
    return {
        "boundingBox": [x, y, x + 100, y, x + 100, y + 20, x, y + 20],
        "text": text,
        "appearance": {"style": {"name": "other", "confidence": 0.9}},
        "words": [
            {"boundingBox": [x, y, x + 50, y, x + 50, y + 20, x, y + 20], "text": text, "confidence": c}
            for c in confidences
        ],
    }


@pytest.fixture
def read_result():
    return {
        "status": "succeeded",
        "createdDateTime": "2024-05-01T08:00:00Z",
        "analyzeResult": {
            "version": "3.2.0",
            "modelVersion": "2022-04-30",
            "readResults": [
                {
                    "page": 1,
                    "angle": 0.4,
                    "width": 1240,
                    "height": 1754,
                    "unit": "pixel",
                    "lines": [
                        azure_line("血常规检查报告", 400, 60),
                        azure_line("白细胞 6.2 10^9/L", 80, 200, confidences=(0.9, 0.8)),
                    ],
                },
                {
                    "page": 2,
                    "width": 1240,
                    "height": 1754,
                    "lines": [azure_line("尿酸 380 umol/L", 80, 120, confidences=())],
                },
            ],
        },
    }


class TestParseAzureReadResult:
    def test_maps_pages_and_lines(self, read_result):
        pages = parse_azure_read_result(read_result)

        assert [p.meta.page_number for p in pages] == [1, 2]
        assert pages[0].meta.width_px == 1240
        assert pages[0].meta.rotation_angle_degrees == pytest.approx(0.4)
        assert [f.text for f in pages[0].fragments] == ["血常规检查报告", "白细胞 6.2 10^9/L"]
        assert pages[0].fragments[1].word_confidences == [0.9, 0.8]

    def test_missing_words_means_full_confidence(self, read_result):
        pages = parse_azure_read_result(read_result)

        fragment = pages[1].fragments[0]
        assert fragment.word_confidences == []
        assert fragment.confidence == 1.0

    def test_extra_fields_are_ignored(self, read_result):
        read_result["analyzeResult"]["readResults"][0]["language"] = "zh-Hans"
        read_result["analyzeResult"]["readResults"][0]["lines"][0]["extra"] = {"a": 1}

        pages = parse_azure_read_result(read_result)

        assert len(pages[0].fragments) == 2

    def test_malformed_bounding_box_is_skipped(self, read_result):
        lines = read_result["analyzeResult"]["readResults"][0]["lines"]
        lines.append({"text": "short box", "boundingBox": [1, 2, 3]})
        lines.append({"text": "text box", "boundingBox": ["a", 2, 3, 4, 5, 6, 7, 8]})
        lines.append({"text": "no box"})

        pages = parse_azure_read_result(read_result)

        assert len(pages[0].fragments) == 2

    def test_page_missing_dimensions_is_skipped(self, read_result):
        del read_result["analyzeResult"]["readResults"][0]["width"]

        pages = parse_azure_read_result(read_result)

        assert [p.meta.page_number for p in pages] == [2]

    def test_out_of_range_word_confidence_is_clamped(self, read_result):
        line = read_result["analyzeResult"]["readResults"][1]["lines"][0]
        line["words"] = [{"text": "尿酸", "confidence": 1.3}, {"text": "380", "confidence": -0.2}]

        pages = parse_azure_read_result(read_result)

        assert pages[1].fragments[0].word_confidences == [1.0, 0.0]

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            "not json",
            [],
            {"status": "running"},
            {"status": "failed", "analyzeResult": {"readResults": [{}]}},
            {"status": "succeeded"},
            {"status": "succeeded", "analyzeResult": {"readResults": []}},
        ],
    )
    def test_unusable_payload_yields_no_pages(self, payload):
        assert parse_azure_read_result(payload) == []
