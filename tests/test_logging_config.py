from __future__ import annotations

import json
import logging
import logging.handlers
from pathlib import Path

import pytest

from wagon.logging_config import (
    HumanReadableFormatter,
    JSONFormatter,
    get_log_format_from_env,
    get_log_level_from_env,
    setup_logging,
)


def _record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "wagon.test", logging.INFO, __file__, 10, message, None, None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_setup_logging_writes_json_file(tmp_path: Path, reset_logging) -> None:
    """Ensure logging setup adds JSON console output and a rotating file handler."""
    log_path = tmp_path / "logs" / "wagon.log"
    setup_logging(level=logging.DEBUG, format_type="json", log_file=log_path)

    root = logging.getLogger()
    handlers = list(root.handlers)
    file_handler = next(
        handler
        for handler in handlers
        if isinstance(handler, logging.handlers.RotatingFileHandler)
    )
    console_handler = next(
        handler for handler in handlers if handler is not file_handler
    )

    assert isinstance(console_handler.formatter, JSONFormatter)
    assert isinstance(file_handler.formatter, JSONFormatter)
    logging.getLogger("wagon.test").info("hello test")

    file_handler.flush()
    contents = log_path.read_text(encoding="utf-8")
    records = [json.loads(line) for line in contents.splitlines() if line.strip()]
    assert any(record.get("message") == "hello test" for record in records)


def test_setup_logging_replaces_handlers(reset_logging) -> None:
    setup_logging(level=logging.INFO, format_type="simple")
    setup_logging(level=logging.WARNING, format_type="human")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, HumanReadableFormatter)
    assert root.level == logging.WARNING


def test_json_formatter_includes_extra_fields() -> None:
    payload = json.loads(JSONFormatter().format(_record(bucket="artifacts")))
    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["bucket"] == "artifacts"
    assert payload["timestamp"].endswith("Z")
    assert "function" in payload


def test_human_formatter_without_colors() -> None:
    text = HumanReadableFormatter(use_colors=False).format(_record())
    assert text.startswith("[INFO]")
    assert "wagon.test - hello" in text
    assert "\033[" not in text


@pytest.mark.parametrize(
    "env,expected",
    [
        ({"WAGON_LOG_LEVEL": "debug"}, logging.DEBUG),
        ({"LOG_LEVEL": "ERROR"}, logging.ERROR),
        ({"WAGON_LOG_LEVEL": "WARN", "LOG_LEVEL": "ERROR"}, logging.WARNING),
        ({"WAGON_LOG_LEVEL": "bogus"}, logging.INFO),
        ({}, logging.INFO),
    ],
)
def test_log_level_from_env(monkeypatch, env, expected) -> None:
    monkeypatch.delenv("WAGON_LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    assert get_log_level_from_env() == expected


def test_log_format_from_env(monkeypatch) -> None:
    monkeypatch.setenv("WAGON_LOG_FORMAT", "JSON")
    assert get_log_format_from_env() == "json"
    monkeypatch.delenv("WAGON_LOG_FORMAT")
    assert get_log_format_from_env() == "human"


def test_importing_wagon_does_not_configure_logging() -> None:
    import wagon  # noqa: F401

    assert not any(
        isinstance(handler, logging.handlers.RotatingFileHandler)
        for handler in logging.getLogger().handlers
    )
