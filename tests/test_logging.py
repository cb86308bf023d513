"""Unit tests for structured logging infrastructure.

- StructuredFormatter produces valid JSON and redacts credentials
- configure_logging installs a single handler on the repohost logger
- Environment variable control
"""

import json
import logging
import sys

import pytest


def _record(name="repohost.resources", msg="GET [%s]", args=("https://api.github.com",)):
    return logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="resources.py",
        lineno=10,
        msg=msg,
        args=args,
        exc_info=None,
    )


class TestStructuredFormatter:
    def test_formatter_produces_valid_json(self):
        from repohost.logging_config import StructuredFormatter

        log_data = json.loads(StructuredFormatter().format(_record()))

        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "repohost.resources"
        assert log_data["message"] == "GET [https://api.github.com]"
        assert log_data["timestamp"].endswith("Z")

    def test_extras_in_context(self):
        from repohost.logging_config import StructuredFormatter

        record = _record()
        record.provider = "github"
        record.status = 200

        log_data = json.loads(StructuredFormatter().format(record))

        assert log_data["context"] == {"provider": "github", "status": 200}

    @pytest.mark.parametrize("key", ["token", "Authorization", "private_token", "secret"])
    def test_sensitive_extras_redacted(self, key):
        from repohost.logging_config import StructuredFormatter

        record = _record()
        setattr(record, key, "ghp_leaked")

        output = StructuredFormatter().format(record)

        assert "ghp_leaked" not in output
        assert "[REDACTED]" in output

    def test_exception_included(self):
        from repohost.logging_config import StructuredFormatter

        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()

        log_data = json.loads(StructuredFormatter().format(record))
        assert "RuntimeError: boom" in log_data["exception"]


class TestConfigureLogging:
    @pytest.fixture
    def fresh_logger(self):
        logger = logging.getLogger("repohost")
        handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
        logger.handlers.clear()
        yield logger
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate

    def test_single_handler_when_called_twice(self, fresh_logger):
        from repohost.logging_config import configure_logging

        configure_logging()
        configure_logging()

        assert len(fresh_logger.handlers) == 1
        assert fresh_logger.propagate is False

    def test_level_from_environment(self, fresh_logger, monkeypatch):
        from repohost.logging_config import configure_logging

        monkeypatch.setenv("REPOHOST_LOG_LEVEL", "DEBUG")
        configure_logging()

        assert fresh_logger.level == logging.DEBUG

    def test_explicit_level_wins(self, fresh_logger, monkeypatch):
        from repohost.logging_config import configure_logging

        monkeypatch.setenv("REPOHOST_LOG_LEVEL", "DEBUG")
        configure_logging("ERROR")

        assert fresh_logger.level == logging.ERROR

    def test_text_format(self, fresh_logger, monkeypatch):
        from repohost.logging_config import TextFormatter, configure_logging

        monkeypatch.setenv("REPOHOST_LOG_FORMAT", "text")
        configure_logging()

        assert isinstance(fresh_logger.handlers[0].formatter, TextFormatter)
