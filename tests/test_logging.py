"""Tests for structured logging."""

import json
import logging

from capadapt.core.logging import ColoredFormatter, JSONFormatter, get_logger


class TestLogging:
    """Tests for formatters and the logger wrapper."""

    def _record(self, **extra):
        record = logging.LogRecord("capadapt.handle", logging.WARNING, __file__, 1, "call failed", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter_includes_context(self):
        record = self._record(component="handle", capability="speak", duration_ms=1.5, success=False)
        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "call failed"
        assert data["component"] == "handle"
        assert data["capability"] == "speak"
        assert data["success"] is False

    def test_colored_formatter_inline_extras(self):
        record = self._record(component="handle", runtime="embedded-1", duration_ms=2.0)
        text = ColoredFormatter().format(record)

        assert "[handle]" in text
        assert "rt=embedded-1" in text
        assert "time=2.0ms" in text

    def test_logger_wrapper_routes_context(self, caplog):
        logger = get_logger("test")
        with caplog.at_level(logging.DEBUG, logger="capadapt.test"):
            logger.info("hello", component="adapter", shape="Duck")

        record = caplog.records[-1]
        assert record.component == "adapter"
        assert record.extra_data == {"shape": "Duck"}

    def test_get_logger_is_cached(self):
        assert get_logger("handle") is get_logger("handle")
