"""Tests for bongo logging setup."""

from __future__ import annotations

import io
import json
import logging

import pytest

from bongo.runtime.logging import ConsoleFormatter, JSONLFormatter, setup_logging


@pytest.fixture(autouse=True)
def _reset_bongo_logger():
    yield
    logger = logging.getLogger("bongo")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def _record(level: int = logging.INFO, msg: str = "hello %s", args: tuple = ("world",)):
    return logging.LogRecord("bongo.test", level, __file__, 10, msg, args, None)


class TestJSONLFormatter:
    def test_basic_entry(self) -> None:
        entry = json.loads(JSONLFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "bongo.test"
        assert entry["message"] == "hello world"
        assert entry["timestamp"].endswith("Z")
        assert "source" not in entry

    def test_warning_has_source(self) -> None:
        entry = json.loads(JSONLFormatter().format(_record(logging.WARNING)))
        assert entry["source"]["line"] == 10

    def test_context_is_included(self) -> None:
        record = _record()
        record.context = {"collection": "parents"}
        entry = json.loads(JSONLFormatter().format(record))
        assert entry["context"] == {"collection": "parents"}


class TestConsoleFormatter:
    def test_info_has_no_level_name(self) -> None:
        line = ConsoleFormatter().format(_record())
        assert "[bongo.test]" in line
        assert "INFO" not in line
        assert line.endswith("hello world")

    def test_warning_shows_level(self) -> None:
        assert "WARNING" in ConsoleFormatter().format(_record(logging.WARNING))


class TestSetupLogging:
    def test_json_output(self) -> None:
        stream = io.StringIO()
        setup_logging("DEBUG", json_format=True, stream=stream)
        logging.getLogger("bongo.runtime.cascade").debug("cascaded %d", 3)
        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "cascaded 3"

    def test_level_filters(self) -> None:
        stream = io.StringIO()
        setup_logging(logging.WARNING, stream=stream)
        logging.getLogger("bongo.x").info("quiet")
        assert stream.getvalue() == ""

    def test_repeated_setup_does_not_duplicate_handlers(self) -> None:
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError):
            setup_logging("chatty")
