"""
Tests for logging infrastructure.
"""

import logging
import json
import sys

import pytest

from documentdb.core.config_manager import LogLevel
from documentdb.core.logging_config import (
    setup_logging,
    log_with_context,
    JSONFormatter,
    SensitiveDataFilter,
    _parse_size
)


def make_record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="documentdb.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingSetup:
    """Test suite for logging setup."""

    def test_setup_logging_defaults(self):
        """Test setting up logging with defaults."""
        setup_logging()

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) > 0

    def test_setup_logging_with_level(self):
        """Test setting up logging with custom level."""
        setup_logging(level="DEBUG")

        root_logger = logging.getLogger()
        assert root_logger.level == logging.DEBUG

    def test_setup_logging_with_file(self, tmp_path):
        """Test setting up logging with file output."""
        log_file = tmp_path / "logs" / "client.log"
        setup_logging(log_file=str(log_file))

        logging.getLogger(__name__).info("Test message")

        assert log_file.exists()
        assert "Test message" in log_file.read_text()

    def test_setup_logging_with_module_levels(self):
        """Test setting up logging with per-module log levels."""
        setup_logging(
            level="INFO",
            module_levels={"documentdb.client.executor": "DEBUG"}
        )

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("documentdb.client.executor").level == logging.DEBUG

    def test_handlers_redact_and_use_stderr(self):
        """Test the console handler writes to stderr through the redaction filter."""
        setup_logging()

        handler = logging.getLogger().handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stderr
        assert any(isinstance(f, SensitiveDataFilter) for f in handler.filters)

    def test_level_enum_accepted(self):
        """Test a str-valued enum level is accepted."""
        setup_logging(level=LogLevel.WARNING)

        assert logging.getLogger().level == logging.WARNING


class TestSensitiveDataFilter:
    """Test suite for redaction of keys and signatures."""

    def test_redacts_authorization_header(self):
        record = make_record("headers: authorization=type%3Dmaster%26ver%3D1.0%26sig%3DabcDEF")
        SensitiveDataFilter().filter(record)

        assert "abcDEF" not in record.msg
        assert "***REDACTED***" in record.msg

    def test_redacts_signature(self):
        record = make_record("token type=master&ver=1.0&sig=s3cr3t/sig+val==")
        SensitiveDataFilter().filter(record)

        assert "s3cr3t" not in record.msg

    def test_redacts_master_key(self):
        record = make_record('config {"master_key": "c2VjcmV0a2V5"}')
        SensitiveDataFilter().filter(record)

        assert "c2VjcmV0a2V5" not in record.msg

    def test_redacts_account_key(self):
        record = make_record("AccountEndpoint=https://x/;AccountKey=c2VjcmV0;")
        SensitiveDataFilter().filter(record)

        assert "c2VjcmV0" not in record.msg
        assert "AccountEndpoint=https://x/" in record.msg

    def test_redacts_context(self):
        record = make_record("request", context={"authorization": "sig", "link": "dbs/abc/"})
        SensitiveDataFilter().filter(record)

        assert record.context == {"authorization": "***REDACTED***", "link": "dbs/abc/"}

    def test_leaves_plain_messages(self):
        record = make_record("GET dbs/abc/ returned 200")

        assert SensitiveDataFilter().filter(record) is True
        assert record.msg == "GET dbs/abc/ returned 200"


class TestJSONFormatter:
    """Test suite for JSON formatter."""

    def test_format_basic(self):
        """Test basic JSON formatting."""
        output = JSONFormatter().format(make_record("Test message"))
        data = json.loads(output)

        assert data["level"] == "INFO"
        assert data["module"] == "documentdb.test"
        assert data["message"] == "Test message"
        assert "timestamp" in data

    def test_format_with_context(self):
        """Test JSON formatting with structured context."""
        record = make_record("retrying", context={"status": 429, "retry_count": 2})
        data = json.loads(JSONFormatter().format(record))

        assert data["context"] == {"status": 429, "retry_count": 2}


class TestLogWithContext:
    """Test suite for log_with_context."""

    def test_attaches_context(self, caplog):
        logger = logging.getLogger("documentdb.test.context")

        with caplog.at_level(logging.WARNING, logger="documentdb.test.context"):
            log_with_context(logger, logging.WARNING, "throttled", link="dbs/abc/", status=429)

        record = caplog.records[-1]
        assert record.getMessage() == "throttled"
        assert record.context == {"link": "dbs/abc/", "status": 429}


class TestParseSize:
    """Test suite for size parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("10MB", 10 * 1024 * 1024),
            ("1GB", 1024 ** 3),
            ("512KB", 512 * 1024),
            ("100B", 100),
            ("2048", 2048),
        ],
    )
    def test_parse(self, value, expected):
        assert _parse_size(value) == expected

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            _parse_size("ten megabytes")
