"""Tests for the logging setup."""

import json
import logging

from razor2liquid.core.config import Settings
from razor2liquid.core.logging import (
    StructuredFormatter,
    TextFormatter,
    get_context_logger,
    setup_logging,
)


def make_record(message="Wrote %s", args=("Mail.liquid",), extra_data=None):
    record = logging.LogRecord("razor2liquid.converter", logging.INFO, __file__, 1, message, args, None)
    if extra_data is not None:
        record.extra_data = extra_data
    return record


class TestFormatters:
    """Text and JSON formatting."""

    def test_text_without_context(self):
        """Test the plain text line."""
        assert TextFormatter().format(make_record()) == "INFO razor2liquid.converter: Wrote Mail.liquid"

    def test_text_with_context(self):
        """Test that context fields are appended."""
        record = make_record(extra_data={"component": "converter", "errors": 0})
        assert TextFormatter().format(record).endswith("Wrote Mail.liquid [component=converter errors=0]")

    def test_json(self):
        """Test that context fields are top-level JSON keys."""
        record = make_record(extra_data={"template": "Mail.cshtml"})
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["message"] == "Wrote Mail.liquid"
        assert entry["level"] == "INFO"
        assert entry["template"] == "Mail.cshtml"


class TestContextLogger:
    """Fixed and per-call context."""

    def test_context_is_merged(self, caplog):
        """Test that per-call fields are added to the fixed ones."""
        logger = get_context_logger("razor2liquid.tests", component="router")
        with caplog.at_level(logging.WARNING, logger="razor2liquid.tests"):
            logger.warning("Template problem", extra_data={"line": 4})
        assert caplog.records[0].extra_data == {"component": "router", "line": 4}

    def test_bind(self, caplog):
        """Test that bind returns a logger with more fixed fields."""
        logger = get_context_logger("razor2liquid.tests", component="converter")
        bound = logger.bind(template="Mail.cshtml")
        with caplog.at_level(logging.INFO, logger="razor2liquid.tests"):
            bound.info("Wrote")
        assert caplog.records[0].extra_data == {"component": "converter", "template": "Mail.cshtml"}
        assert logger.extra == {"component": "converter"}


class TestSetup:
    """Root logger configuration."""

    def test_level_and_format(self):
        """Test that settings choose the level and formatter."""
        setup_logging(Settings(_env_file=None, LOG_LEVEL="warning", LOG_FORMAT="json"))
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_log_file(self, tmp_path):
        """Test that LOG_FILE adds a file handler."""
        log_file = tmp_path / "logs" / "convert.log"
        setup_logging(Settings(_env_file=None, LOG_FILE=str(log_file)))
        logging.getLogger("razor2liquid.tests").info("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")
