"""
Progress extraction from encoder output lines.

HandBrakeCLI prints its completion percentage directly, e.g.
``Encoding: task 1 of 1, 37.50 % (23.45 fps, avg 24.12 fps, ETA 00h15m42s)``.
ffmpeg prints the media timestamp it has reached, e.g.
``frame= 1234 fps=18 q=-0.0 size= 10240KiB time=00:01:23.45 bitrate=...``,
which is turned into a percentage using the input duration.

``parse_progress`` returns None when a line carries no progress signal. None
is not 0 %: callers must leave their state untouched.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Both HandBrake layouts are accepted; older builds omit the task counter.
TASK_PERCENT_REGEX = re.compile(r"task\s+\d+\s+of\s+\d+,\s*(\d+(?:\.\d+)?)\s*%")
PERCENT_REGEX = re.compile(r"(\d+(?:\.\d+)?)\s*%")
TIMESTAMP_REGEX = re.compile(r"time=\s*(\d+):(\d{1,2}):(\d{1,2}(?:\.\d+)?)")


class ToolKind(Enum):
    """How an encoder reports progress."""
    PERCENT = "percent"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class ProgressContext:
    tool_kind: ToolKind
    total_duration: float = 0.0


def timestamp_to_seconds(hours: str, minutes: str, seconds: str) -> float:
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def _clamp(percent: float) -> float:
    return min(100.0, max(0.0, percent))


def parse_progress(line: str, context: ProgressContext) -> Optional[float]:
    """Map one line of tool output to a percentage in [0, 100], or None."""
    if context.tool_kind is ToolKind.PERCENT:
        match = TASK_PERCENT_REGEX.search(line) or PERCENT_REGEX.search(line)
        if not match:
            return None
        return _clamp(float(match.group(1)))

    if context.total_duration <= 0:
        return None
    match = TIMESTAMP_REGEX.search(line)
    if not match:
        return None
    elapsed = timestamp_to_seconds(*match.groups())
    return _clamp(elapsed / context.total_duration * 100)
