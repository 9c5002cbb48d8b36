"""Prometheus metrics for batch document processing.

The normalizer and extractor stay free of shared state; only the batch
pipeline records these.

Usage:
    from medparse.observability.metrics import DOCUMENTS_PROCESSED

    DOCUMENTS_PROCESSED.labels(status="success").inc()
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry to avoid conflicts with the default registry
REGISTRY = CollectorRegistry(auto_describe=True)

DOCUMENTS_PROCESSED = Counter(
    name="medparse_documents_processed_total",
    documentation="Total number of documents processed",
    labelnames=["status"],  # success, failed
    registry=REGISTRY,
)

EXTRACTION_STRATEGY = Counter(
    name="medparse_extraction_strategy_total",
    documentation="Extraction results by fallback strategy",
    labelnames=["strategy"],
    registry=REGISTRY,
)

PROVIDER_FAILURES = Counter(
    name="medparse_provider_failures_total",
    documentation="Provider calls that failed after retries",
    labelnames=["provider"],  # ocr, llm
    registry=REGISTRY,
)

OCR_LINES = Histogram(
    name="medparse_ocr_lines",
    documentation="Lines per normalized document",
    buckets=(0, 10, 25, 50, 100, 200, 500, float("inf")),
    registry=REGISTRY,
)

DOCUMENT_PROCESSING_DURATION = Histogram(
    name="medparse_document_processing_duration_seconds",
    documentation="End-to-end document pipeline duration in seconds",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, float("inf")),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Generate metrics in Prometheus exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
