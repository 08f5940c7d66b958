"""Unit tests for structured logging setup."""

import io
import json
import logging

import pytest
import structlog

from replica_store.infrastructure.logging import HANDLER_NAME, get_logger, setup_logging


@pytest.fixture
def log_stream():
    """Install JSON logging on a private stream and restore the root logger after."""
    root = logging.getLogger()
    saved_level = root.level
    stream = io.StringIO()
    setup_logging(level="INFO", log_format="json", stream=stream)
    yield stream
    for handler in list(root.handlers):
        if handler.get_name() == HANDLER_NAME:
            root.removeHandler(handler)
    root.setLevel(saved_level)
    structlog.reset_defaults()


def read_lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


@pytest.mark.unit
class TestLogging:
    """Test that stdlib and structlog records share one JSON format."""

    def test_domain_logger_renders_json(self, log_stream):
        """Test that a domain module's stdlib warning is rendered as JSON."""
        logging.getLogger("replica_store.domain.services.replication_service").warning(
            "Insufficient successful replications for %s. Expected: %d, Got: %d",
            "photos/1/1/blob",
            2,
            1,
        )

        (record,) = read_lines(log_stream)
        assert record["event"] == (
            "Insufficient successful replications for photos/1/1/blob. Expected: 2, Got: 1"
        )
        assert record["level"] == "warning"
        assert record["logger"] == "replica_store.domain.services.replication_service"
        assert "timestamp" in record

    def test_structlog_event_renders_json(self, log_stream):
        """Test that application events go through the same handler."""
        get_logger("replica_store.application").info(
            "object_uploaded", bucket="photos", version=3
        )

        (record,) = read_lines(log_stream)
        assert record["event"] == "object_uploaded"
        assert record["version"] == 3
        assert record["level"] == "info"

    def test_level_filters_records(self, log_stream):
        """Test that records below the configured level are dropped."""
        logging.getLogger("replica_store.adapters").debug("noise")
        get_logger("replica_store").debug("noise")
        assert read_lines(log_stream) == []

    def test_setup_replaces_previous_handler(self, log_stream):
        """Test that repeated setup keeps a single handler."""
        second = io.StringIO()
        setup_logging(level="INFO", log_format="json", stream=second)

        logging.getLogger("replica_store").warning("once")

        handlers = [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]
        assert len(handlers) == 1
        assert log_stream.getvalue() == ""
        assert read_lines(second)[0]["event"] == "once"
