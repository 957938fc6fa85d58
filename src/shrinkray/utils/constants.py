"""
Constants and environment settings for batch encoding.

This module contains the constants shared by the encoding workflow: accepted
video extensions, status labels used in console output, folder defaults and a
few tuning values for the progress monitor. Environment overrides are read
from a ``.env`` file when one is present.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Config file location; overridable for tests and portable installs
CONFIG_FILE = os.getenv("SHRINKRAY_CONFIG", "shrinkray.conf")
CONSOLE_LOG_LEVEL = os.getenv("SHRINKRAY_LOG_LEVEL", "INFO").upper()

# Folder name defaults (relative to the working root)
OUTPUT_FOLDER = "Encoded"
HOLDING_FOLDER = "ToDelete"
TEMP_FOLDER = "temp"
LOG_FOLDER = "logs"
TOOLS_FOLDER = "tools"

# Log files older than this are pruned
LOG_RETENTION_DAYS = 7

# Progress monitor tuning
ETA_WINDOW_SIZE = 8
POLL_INTERVAL = 0.05  # seconds the supervisor waits for output before re-checking
DIAGNOSTIC_TAIL_LINES = 20

# Size projection fallback when duration is unknown
FALLBACK_SIZE_RATIO = 0.7
AUDIO_OVERHEAD_RATIO = 0.15

# Accepted video file extensions
VIDEO_EXTENSIONS = {".mkv", ".mp4", ".avi", ".mov", ".m4v", ".wmv", ".ts", ".webm"}

# Release feeds used by the update check
GITHUB_API_URL = "https://api.github.com"
HANDBRAKE_REPO = "HandBrake/HandBrake"
FFMPEG_REPO = "FFmpeg/FFmpeg"

# Processing status labels
STATUS_OK = "OK"
STATUS_FAIL = "FAIL"
STATUS_SKIP = "SKIP"
STATUS_CANCELLED = "CANCELLED"
STATUS_MOVED = "MOVED"
