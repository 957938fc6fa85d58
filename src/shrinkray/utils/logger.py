"""
Provides structured logging with log levels and a daily log file.

This module provides a structured logging system with UTC timestamps, log levels,
and key-value pair formatting for better log parsing and analysis. Console lines
go through ``tqdm.write`` so they never tear a live progress bar. An optional
file sink appends every entry to ``shrinkray-YYYY-MM-DD.log`` and prunes files
older than the retention window.
"""
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from tqdm import tqdm

_print_lock = threading.Lock()
_separator = " | "
_file_prefix = "shrinkray-"


class LogLevel(Enum):
    """Log level enumeration."""
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4


_current_level = LogLevel.INFO
_file_level = LogLevel.DEBUG


class _FileSink:
    """Append-only writer that switches to a new file when the date changes."""

    def __init__(self, log_dir: Path, retention_days: int):
        self.log_dir = log_dir
        self.retention_days = retention_days
        self._date: Optional[str] = None
        self._handle: Optional[TextIO] = None

    def write(self, text: str) -> None:
        today = datetime.now().strftime("%Y-%m-%d")
        if today != self._date:
            self.close()
            self.log_dir.mkdir(parents=True, exist_ok=True)
            path = self.log_dir / f"{_file_prefix}{today}.log"
            self._handle = open(path, "a", encoding="utf-8", buffering=1)
            self._date = today
            prune_logs(self.log_dir, self.retention_days)
        self._handle.write(text + "\n")

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            self._date = None


_sink: Optional[_FileSink] = None


def set_log_level(level: LogLevel) -> None:
    """Set the current console log level."""
    global _current_level
    _current_level = level


def get_log_level() -> LogLevel:
    """Get the current console log level."""
    return _current_level


def configure_file_sink(log_dir: Optional[Path], retention_days: int = 7,
                        level: LogLevel = LogLevel.DEBUG) -> None:
    """Start (or stop, with ``log_dir=None``) writing entries to a daily log file."""
    global _sink, _file_level
    with _print_lock:
        if _sink is not None:
            _sink.close()
            _sink = None
        _file_level = level
        if log_dir is not None:
            _sink = _FileSink(Path(log_dir), retention_days)


def prune_logs(log_dir: Path, retention_days: int) -> int:
    """Delete daily log files older than ``retention_days``. Returns how many were removed."""
    if not log_dir.exists():
        return 0
    cutoff = (datetime.now() - timedelta(days=retention_days)).strftime("%Y-%m-%d")
    removed = 0
    for path in log_dir.glob(f"{_file_prefix}*.log"):
        stamp = path.stem[len(_file_prefix):]
        if stamp < cutoff:
            try:
                path.unlink()
                removed += 1
            except OSError:
                continue
    return removed


def _format_kv(data: Dict[str, Any]) -> str:
    """Format key-value pairs for logging."""
    parts = []
    for key, value in data.items():
        if isinstance(value, str):
            # Escape quotes and newlines to keep log entries single-line.
            escaped = value.replace("\r", "\\r").replace("\n", "\\n")
            escaped = escaped.replace('"', '\\"')
            parts.append(f'{key}="{escaped}"')
        elif value is None:
            parts.append(f'{key}=null')
        elif isinstance(value, bool):
            parts.append(f'{key}={str(value).lower()}')
        else:
            parts.append(f'{key}={value}')
    return _separator.join(parts)


def _format_entry(event: str, level: LogLevel, kwargs: Dict[str, Any]) -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    header = f"{timestamp}{_separator}[{level.name}]{_separator}{event}"
    if kwargs:
        return f"{header}{_separator}{_format_kv(kwargs)}"
    return header


def _write_line(text: str) -> None:
    tqdm.write(text)


def log(event: str, level: LogLevel = LogLevel.INFO, **kwargs) -> None:
    """
    Structured logging function.

    Args:
        event: Event name (e.g., 'session.start', 'encode.complete')
        level: Log level (TRACE, DEBUG, INFO, WARN, ERROR)
        **kwargs: Key-value pairs to log
    """
    to_console = level.value >= _current_level.value
    to_file = _sink is not None and level.value >= _file_level.value
    if not (to_console or to_file):
        return

    with _print_lock:
        entry = _format_entry(event, level, kwargs)
        if to_console:
            _write_line(entry)
        if to_file:
            _sink.write(entry)


def file_log(event: str, level: LogLevel = LogLevel.DEBUG, **kwargs) -> None:
    """Like ``log`` but only writes to the log file (command lines, tracebacks, tool output)."""
    if _sink is None or level.value < _file_level.value:
        return
    with _print_lock:
        _sink.write(_format_entry(event, level, kwargs))


def raw(text: str) -> None:
    """Append an unformatted line to the log file, if one is configured."""
    if _sink is None:
        return
    with _print_lock:
        _sink.write(text.rstrip("\r\n"))


def safe_print(*args, **kwargs) -> None:
    """
    Thread-safe print function for plain console output (menus, summaries).
    Use log() for structured logging instead.
    """
    with _print_lock:
        print(*args, **kwargs, flush=True)
