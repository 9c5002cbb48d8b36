"""Tests for Prometheus metrics definitions."""

from medparse.observability.metrics import (
    DOCUMENTS_PROCESSED,
    EXTRACTION_STRATEGY,
    REGISTRY,
    get_metrics_content_type,
    get_metrics_text,
)


class TestCounterMetrics:
    def test_documents_processed_counter(self):
        initial = DOCUMENTS_PROCESSED.labels(status="success")._value.get()

        DOCUMENTS_PROCESSED.labels(status="success").inc()

        assert DOCUMENTS_PROCESSED.labels(status="success")._value.get() == initial + 1

    def test_strategy_counter_registered(self):
        EXTRACTION_STRATEGY.labels(strategy="FieldMapped").inc()

        value = REGISTRY.get_sample_value(
            "medparse_extraction_strategy_total", {"strategy": "FieldMapped"}
        )
        assert value is not None and value >= 1


class TestExposition:
    def test_metrics_text_contains_metric_names(self):
        text = get_metrics_text().decode("utf-8")

        assert "medparse_documents_processed_total" in text
        assert "medparse_document_processing_duration_seconds" in text

    def test_content_type(self):
        assert get_metrics_content_type().startswith("text/plain")
