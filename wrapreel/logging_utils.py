"""Centralized logging configuration for WrapReel.

Provides helpers to set up console and rotating file handlers with a
consistent format. Intended to be called from the CLI (run.py / cli.py)
before any sequencer is constructed.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import os
from enum import Enum
from pathlib import Path
from typing import Optional


DEFAULT_LOG_FILENAME = "wrapreel.log"


class LogMode(str, Enum):
    """Logging presets that affect verbosity targets."""

    QUIET = "quiet"
    NORMAL = "normal"
    TRACE = "trace"


_LOG_MODE: LogMode = LogMode.NORMAL
_TRACE_FLAG = "WRAPREEL_TRACE"
_TRACE_TAG = "[sequencer.trace]"


def get_default_log_dir() -> Path:
    """Return a suitable per-user log directory.

    On Windows, prefer %LOCALAPPDATA%/WrapReel. Else use ~/.wrapreel.
    Falls back to cwd if neither is writable.
    """
    local_appdata = os.environ.get("LOCALAPPDATA")
    if local_appdata:
        p = Path(local_appdata) / "WrapReel"
        try:
            p.mkdir(parents=True, exist_ok=True)
            return p
        except OSError:
            pass

    p = Path.home() / ".wrapreel"
    try:
        p.mkdir(parents=True, exist_ok=True)
        return p
    except OSError:
        return Path.cwd()


def get_default_log_path() -> Path:
    """Default full path to the log file."""
    return get_default_log_dir() / DEFAULT_LOG_FILENAME


def _parse_log_mode(mode: LogMode | str | None) -> LogMode:
    if mode is None:
        return LogMode.NORMAL
    if isinstance(mode, LogMode):
        return mode
    try:
        return LogMode(mode.lower())
    except ValueError:
        return LogMode.NORMAL


def set_log_mode(mode: LogMode | str | None) -> LogMode:
    """Persist the active log mode for other modules to query later."""

    global _LOG_MODE
    _LOG_MODE = _parse_log_mode(mode)
    return _LOG_MODE


def get_log_mode() -> LogMode:
    return _LOG_MODE


def is_trace_logging_enabled() -> bool:
    return _LOG_MODE is LogMode.TRACE


def is_quiet_logging_enabled() -> bool:
    return _LOG_MODE is LogMode.QUIET


def _trace_allowed() -> bool:
    raw = os.environ.get(_TRACE_FLAG, "")
    if raw.strip().lower() in {"1", "true", "yes", "on"}:
        return True
    return is_trace_logging_enabled()


class _TimerTraceFilter(logging.Filter):
    """Drops per-timer trace chatter unless explicitly enabled."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        if _TRACE_TAG in message and not _trace_allowed():
            return False
        return True


_TIMER_TRACE_FILTER = _TimerTraceFilter()


def _resolve_level(level: str | int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


class KeyValueFormatter(logging.Formatter):
    """One record per line as ``key=value`` pairs.

    The message is JSON-quoted so embedded spaces and newlines survive
    line-oriented tools (grep, awk).
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"ts={self.formatTime(record, self.datefmt)}",
            f"level={record.levelname}",
            f"logger={record.name}",
            f"msg={json.dumps(record.getMessage(), ensure_ascii=False)}",
        ]
        if record.exc_info:
            parts.append(f"exc={json.dumps(self.formatException(record.exc_info), ensure_ascii=False)}")
        return " ".join(parts)


def _make_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return KeyValueFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
    return logging.Formatter(fmt="[%(asctime)s] %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S")


def _levels_for(level: str | int, mode: LogMode) -> tuple[int, int]:
    """(file level, console level) for *level* under *mode*."""
    file_level = _resolve_level(level)
    if mode is LogMode.TRACE:
        file_level = min(file_level, logging.DEBUG)
    console_level = file_level
    if mode is LogMode.QUIET:
        console_level = max(logging.WARNING, file_level)
    return file_level, console_level


def _attach_handlers(
    logger: logging.Logger,
    log_path: Path,
    formatter: logging.Formatter,
    file_level: int,
    console_level: int,
    add_console: bool,
) -> None:
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
        )
    except OSError as exc:
        # Unwritable log location: keep going with the console handler only
        file_handler = None
        logging.getLogger(__name__).warning("Cannot open log file %s: %s", log_path, exc)
    if file_handler is not None:
        file_handler.setLevel(file_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(_TIMER_TRACE_FILTER)
        logger.addHandler(file_handler)

    if add_console:
        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(formatter)
        console.addFilter(_TIMER_TRACE_FILTER)
        logger.addHandler(console)


def _retune_handlers(logger: logging.Logger, file_level: int, console_level: int) -> None:
    for handler in logger.handlers:
        # FileHandler subclasses StreamHandler, so test it first
        if isinstance(handler, logging.FileHandler):
            handler.setLevel(file_level)
        elif isinstance(handler, logging.StreamHandler):
            handler.setLevel(console_level)


def setup_logging(
    *,
    level: str | int = "INFO",
    log_file: Optional[str | Path] = None,
    json_format: bool = False,
    logger_name: Optional[str] = None,
    log_mode: LogMode | str | None = None,
    add_console: bool = True,
) -> logging.Logger:
    """Configure logging for the application.

    - level: str or int (DEBUG/INFO/WARNING/ERROR)
    - log_file: path for the rotating file handler (default: per-user dir)
    - json_format: if True, write ``key=value`` lines via KeyValueFormatter
    - logger_name: root logger by default; can scope to a sub-logger
    - log_mode: optional preset (quiet/normal/trace) that adjusts verbosity targets
    - add_console: add a console StreamHandler in addition to the file handler

    Handlers are attached only once per logger; later calls just retune levels.
    """
    mode = set_log_mode(log_mode) if log_mode is not None else get_log_mode()
    file_level, console_level = _levels_for(level, mode)

    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()
    if not any(isinstance(f, _TimerTraceFilter) for f in logger.filters):
        logger.addFilter(_TIMER_TRACE_FILTER)
    logger.setLevel(file_level)

    if logger.handlers:
        _retune_handlers(logger, file_level, console_level)
    else:
        log_path = Path(log_file) if log_file else get_default_log_path()
        _attach_handlers(logger, log_path, _make_formatter(json_format), file_level, console_level, add_console)
    return logger
