"""
Constants, logging and small system helpers shared by the encoder.

This module re-exports the constants most callers need together with the
``LogLevel`` enumeration used by the structured logger.
"""

from .constants import (
    AUDIO_OVERHEAD_RATIO,
    CONFIG_FILE,
    CONSOLE_LOG_LEVEL,
    DIAGNOSTIC_TAIL_LINES,
    ETA_WINDOW_SIZE,
    FALLBACK_SIZE_RATIO,
    HOLDING_FOLDER,
    LOG_FOLDER,
    LOG_RETENTION_DAYS,
    OUTPUT_FOLDER,
    POLL_INTERVAL,
    STATUS_CANCELLED,
    STATUS_FAIL,
    STATUS_MOVED,
    STATUS_OK,
    STATUS_SKIP,
    TEMP_FOLDER,
    TOOLS_FOLDER,
    VIDEO_EXTENSIONS,
)
from .logger import LogLevel

__all__ = [
    "AUDIO_OVERHEAD_RATIO",
    "CONFIG_FILE",
    "CONSOLE_LOG_LEVEL",
    "DIAGNOSTIC_TAIL_LINES",
    "ETA_WINDOW_SIZE",
    "FALLBACK_SIZE_RATIO",
    "HOLDING_FOLDER",
    "LOG_FOLDER",
    "LOG_RETENTION_DAYS",
    "OUTPUT_FOLDER",
    "POLL_INTERVAL",
    "STATUS_CANCELLED",
    "STATUS_FAIL",
    "STATUS_MOVED",
    "STATUS_OK",
    "STATUS_SKIP",
    "TEMP_FOLDER",
    "TOOLS_FOLDER",
    "VIDEO_EXTENSIONS",
    "LogLevel",
]
