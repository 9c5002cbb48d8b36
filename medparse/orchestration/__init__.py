"""Batch orchestration.

Usage:
    from medparse.orchestration import BatchPipeline, build_comprehensive_report

    pipeline = BatchPipeline(ocr_provider, llm_provider)
    summary = await pipeline.run(jobs)
    report = build_comprehensive_report(summary)
"""

from medparse.orchestration.batch_pipeline import BatchPipeline, LLMProvider, OCRProvider
from medparse.orchestration.report import build_comprehensive_report

__all__ = [
    "BatchPipeline",
    "OCRProvider",
    "LLMProvider",
    "build_comprehensive_report",
]
