"""Tests for centralized logging configuration."""

import logging
import logging.handlers
from pathlib import Path

from ..logging_utils import (
    LogMode,
    get_log_mode,
    is_quiet_logging_enabled,
    is_trace_logging_enabled,
    set_log_mode,
    setup_logging,
)


def test_setup_logging_file_and_console_handlers(tmp_path: Path):
    log_file = tmp_path / "test.log"
    logger = setup_logging(
        level="DEBUG",
        log_file=str(log_file),
        json_format=False,
        add_console=True,
        logger_name="test_logging_utils.file_console",
    )
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert log_file.exists()
    assert "hello" in log_file.read_text(encoding="utf-8")


def test_setup_logging_idempotent(tmp_path: Path):
    log_file = tmp_path / "test2.log"
    name = "test_logging_utils.idempotent"
    logger1 = setup_logging(level="INFO", log_file=str(log_file), logger_name=name)
    count = len(logger1.handlers)
    logger2 = setup_logging(level="WARNING", log_file=str(log_file), logger_name=name)
    assert logger1 is logger2
    assert len(logger2.handlers) == count
    assert logger2.level == logging.WARNING


def test_log_mode_helpers_roundtrip():
    set_log_mode(LogMode.TRACE)
    assert get_log_mode() is LogMode.TRACE
    assert is_trace_logging_enabled() is True
    set_log_mode("quiet")
    assert get_log_mode() is LogMode.QUIET
    assert is_quiet_logging_enabled() is True
    assert set_log_mode("bogus") is LogMode.NORMAL


def test_setup_logging_trace_forces_debug(tmp_path: Path):
    logger = setup_logging(
        level="INFO",
        log_file=str(tmp_path / "trace.log"),
        log_mode=LogMode.TRACE,
        logger_name="test_logging_utils.trace",
    )
    assert logger.level == logging.DEBUG
    set_log_mode(LogMode.NORMAL)


def test_timer_trace_is_filtered_unless_enabled(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("WRAPREEL_TRACE", raising=False)
    log_file = tmp_path / "filtered.log"
    set_log_mode(LogMode.NORMAL)
    logger = setup_logging(
        level="DEBUG",
        log_file=str(log_file),
        add_console=False,
        logger_name="test_logging_utils.filtered",
    )
    logger.debug("[sequencer.trace] Armed timer")
    logger.debug("[sequencer] Slide 0 -> 1")

    monkeypatch.setenv("WRAPREEL_TRACE", "1")
    logger.debug("[sequencer.trace] visible now")
    for handler in logger.handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "Armed timer" not in text
    assert "Slide 0 -> 1" in text
    assert "visible now" in text


def test_json_format_writes_key_value_lines(tmp_path: Path):
    log_file = tmp_path / "kv.log"
    logger = setup_logging(
        level="INFO",
        log_file=str(log_file),
        json_format=True,
        add_console=False,
        logger_name="test_logging_utils.key_value",
    )
    logger.info("slide changed to 2")
    for handler in logger.handlers:
        handler.flush()

    line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert line.startswith("ts=")
    assert "level=INFO" in line
    assert "logger=test_logging_utils.key_value" in line
    assert 'msg="slide changed to 2"' in line


def test_quiet_mode_raises_console_level_only(tmp_path: Path):
    logger = setup_logging(
        level="DEBUG",
        log_file=str(tmp_path / "quiet.log"),
        log_mode=LogMode.QUIET,
        logger_name="test_logging_utils.quiet",
    )
    levels = {type(h): h.level for h in logger.handlers}
    assert levels[logging.handlers.RotatingFileHandler] == logging.DEBUG
    assert levels[logging.StreamHandler] == logging.WARNING
    set_log_mode(LogMode.NORMAL)
