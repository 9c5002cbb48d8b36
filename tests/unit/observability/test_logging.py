"""Tests for structured logging configuration."""

import structlog
from structlog.testing import capture_logs

from medparse.observability.context import clear_correlation_id, set_correlation_id
from medparse.observability.logging import (
    add_correlation_id_processor,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


class TestAddCorrelationIdProcessor:
    def test_adds_correlation_id_when_set(self):
        set_correlation_id("doc-42")

        result = add_correlation_id_processor(None, "info", {"event": "e"})

        assert result["correlation_id"] == "doc-42"
        clear_correlation_id()

    def test_adds_none_marker_when_not_set(self):
        clear_correlation_id()

        result = add_correlation_id_processor(None, "info", {"event": "e", "count": 3})

        assert result == {"event": "e", "count": 3, "correlation_id": "none"}


class TestConfigureLogging:
    def test_json_and_console_output(self):
        for json_output in (True, False):
            configure_logging(level="INFO", json_output=json_output)
            assert structlog.get_logger() is not None

    def test_handles_all_valid_levels(self):
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "debug"]:
            configure_logging(level=level, add_timestamp=False)


class TestGetLogger:
    def test_binds_component_and_context(self):
        with capture_logs() as logs:
            get_logger("layout", document_id="a").info("document_normalized", lines=3)

        [entry] = logs
        assert entry["event"] == "document_normalized"
        assert entry["component"] == "layout"
        assert entry["document_id"] == "a"
        assert entry["lines"] == 3
        assert entry["log_level"] == "info"


class TestContextBinding:
    def test_bind_and_clear_context(self):
        clear_context()
        bind_context(batch_id="b-1")

        assert structlog.contextvars.get_contextvars() == {"batch_id": "b-1"}

        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
