"""Integration tests for the full document flow.

Covers:
1. Multi-page, two-column Azure payload normalized into one reading order
2. Batch run with mock providers through extraction and finalization
3. Comprehensive report over the batch
"""

from unittest.mock import AsyncMock, Mock

import pytest

from medparse.models.batch import DocumentJob
from medparse.models.config import ConcurrencyConfig
from medparse.models.extraction import ExtractionStrategy
from medparse.orchestration import BatchPipeline, build_comprehensive_report
from medparse.services.layout import LayoutNormalizer, parse_azure_read_result


def line(text, x, y, confidence=0.95):
    return {
        "text": text,
        "boundingBox": [x, y, x + 300, y, x + 300, y + 20, x, y + 20],
        "words": [{"text": text, "confidence": confidence}],
    }


@pytest.fixture
def two_page_payload():
    """Page 1 single column, page 2 two columns, lines deliberately shuffled"""
    return {
        "status": "succeeded",
        "analyzeResult": {
            "modelVersion": "2022-04-30",
            "readResults": [
                {
                    "page": 1,
                    "width": 1000,
                    "height": 1400,
                    "unit": "pixel",
                    "lines": [
                        line("姓名：张三", 60, 140),
                        line("体检报告", 60, 100),
                        line("体检日期：2024-03-01", 60, 180),
                    ],
                },
                {
                    "page": 2,
                    "width": 1000,
                    "height": 1400,
                    "unit": "pixel",
                    "lines": [
                        line("尿酸 420 umol/L ↑", 600, 90),
                        line("血糖 7.8 mmol/L ↑ 3.9-6.1", 60, 100),
                        line("甘油三酯 1.2 mmol/L", 600, 190),
                        line("总胆固醇 4.2 mmol/L", 60, 200, confidence=0.6),
                    ],
                },
            ],
        },
    }


class TestNormalizationFlow:
    def test_reading_order_across_pages_and_columns(self, two_page_payload):
        document = LayoutNormalizer().normalize(parse_azure_read_result(two_page_payload))

        assert document.texts() == [
            "体检报告",
            "姓名：张三",
            "体检日期：2024-03-01",
            "血糖 7.8 mmol/L ↑ 3.9-6.1",
            "总胆固醇 4.2 mmol/L",
            "尿酸 420 umol/L ↑",
            "甘油三酯 1.2 mmol/L",
        ]
        assert [l.global_index for l in document.lines] == list(range(7))
        assert [l.page_number for l in document.lines] == [1, 1, 1, 2, 2, 2, 2]
        assert [l.index_within_page for l in document.lines] == [0, 1, 2, 0, 1, 2, 3]

    def test_quality_reflects_low_confidence_line(self, two_page_payload):
        document = LayoutNormalizer().normalize(parse_azure_read_result(two_page_payload))

        assert document.quality.total_pages == 2
        assert document.quality.total_lines == 7
        assert document.quality.low_confidence_lines == 1


class TestBatchFlow:
    @pytest.mark.asyncio
    async def test_batch_to_comprehensive_report(self, two_page_payload):
        responses = {
            "a": (
                "好的，分析如下：\n```json\n"
                '{"summary": "血糖偏高", "healthScore": 72, '
                '"keyFindings": ["血糖偏高", "尿酸偏高"], '
                '"recommendations": {"diet": ["控糖"]}, '
                '"riskFactors": [{"type": "代谢", "probability": "中", "description": "糖尿病风险"}]}\n'
                "```"
            ),
            "b": (
                '{"总结": "基本正常", "评分": 90, "主要发现": ["血脂正常"], '
                '"建议": {"lifestyle": ["保持运动"]}, "风险": []}'
            ),
        }
        ocr = Mock()
        ocr.recognize = AsyncMock(return_value=two_page_payload)
        llm = Mock()
        calls = []

        async def complete(prompt):
            key = "a" if not calls else "b"
            calls.append(prompt)
            return responses[key]

        llm.complete = AsyncMock(side_effect=complete)
        pipeline = BatchPipeline(
            ocr_provider=ocr,
            llm_provider=llm,
            config=ConcurrencyConfig(max_concurrent_documents=1),
        )

        summary = await pipeline.run(
            [
                DocumentJob(document_id="a", file_name="a.jpg", payload={}),
                DocumentJob(document_id="b", file_name="b.jpg", payload={}),
            ]
        )

        assert summary.succeeded == 2
        first = summary.outcome_for("a").extraction
        assert first.strategy_used == ExtractionStrategy.RECOVERED_JSON
        assert first["overallStatus"] == "健康状况良好"
        second = summary.outcome_for("b").extraction
        assert second.strategy_used == ExtractionStrategy.FIELD_MAPPED
        assert second["healthScore"] == 90
        assert "体检报告\n姓名：张三" in calls[0]

        report = build_comprehensive_report(summary)

        assert report.success_count == 2
        assert report.overall_health_score == 81
        assert report.combined_findings == ["血糖偏高", "尿酸偏高", "血脂正常"]
        assert report.combined_recommendations["diet"] == ["控糖"]
        assert report.combined_recommendations["lifestyle"] == ["保持运动"]
        assert [r.affected_documents for r in report.risk_factors] == [["a.jpg"]]
