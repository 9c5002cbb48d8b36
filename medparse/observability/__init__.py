"""Observability: structured logging, correlation IDs and metrics.

Usage:
    from medparse.observability import configure_logging, correlation_id_context

    configure_logging(level="INFO")
    with correlation_id_context("doc-42"):
        ...
"""

from medparse.observability.context import (
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
    correlation_id_context,
)
from medparse.observability.logging import (
    get_logger,
    configure_logging,
    add_correlation_id_processor,
)
from medparse.observability.metrics import (
    DOCUMENTS_PROCESSED,
    EXTRACTION_STRATEGY,
    PROVIDER_FAILURES,
    OCR_LINES,
    DOCUMENT_PROCESSING_DURATION,
    get_metrics_text,
)

__all__ = [
    # Context
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Logging
    "get_logger",
    "configure_logging",
    "add_correlation_id_processor",
    # Metrics
    "DOCUMENTS_PROCESSED",
    "EXTRACTION_STRATEGY",
    "PROVIDER_FAILURES",
    "OCR_LINES",
    "DOCUMENT_PROCESSING_DURATION",
    "get_metrics_text",
]
