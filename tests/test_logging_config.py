"""Tests for ingestion.logging_config."""

import io
import logging

import pytest

from ingestion.logging_config import resolve_level, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestResolveLevel:
    @pytest.mark.parametrize("value, expected", [
        (logging.DEBUG, logging.DEBUG),
        ("debug", logging.DEBUG),
        ("WARNING", logging.WARNING),
    ])
    def test_names_and_numbers(self, value, expected):
        assert resolve_level(value) == expected

    def test_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        assert resolve_level(None) == logging.ERROR

    def test_default(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert resolve_level(None) == logging.INFO

    def test_unknown(self):
        with pytest.raises(ValueError):
            resolve_level("chatty")


def test_console_and_file(tmp_path):
    stream = io.StringIO()
    log_file = tmp_path / "logs" / "rag.log"

    root = setup_logging(level="INFO", log_file=log_file, stream=stream)
    logging.getLogger("chunking.storage").info("Saved 3 chunks")
    logging.getLogger("chunking.storage").debug("hidden")
    for handler in root.handlers:
        handler.flush()

    assert len(root.handlers) == 2
    assert "chunking.storage - INFO - Saved 3 chunks" in stream.getvalue()
    assert "hidden" not in stream.getvalue()
    assert "Saved 3 chunks" in log_file.read_text(encoding="utf-8")


def test_repeated_setup_replaces_handlers():
    setup_logging(level=logging.INFO, stream=io.StringIO())
    root = setup_logging(level=logging.INFO, stream=io.StringIO())
    assert len(root.handlers) == 1


def test_http_loggers_are_quieted():
    setup_logging(level=logging.DEBUG, stream=io.StringIO())
    assert logging.getLogger("httpx").level == logging.WARNING
