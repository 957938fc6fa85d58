from datetime import datetime, timedelta, timezone
from typing import Optional

ETA_PLACEHOLDER = "--:--"


def format_seconds(time_in_seconds: float) -> str:
    """Render a duration as ``1h2m3s`` / ``2m3s`` / ``3s``."""
    time_in_seconds = max(0.0, time_in_seconds)
    eta_hours = int(time_in_seconds // 3600)
    eta_mins = int((time_in_seconds % 3600) // 60)
    eta_secs = int(time_in_seconds % 60)
    if eta_hours > 0:
        return f"{eta_hours}h{eta_mins}m{eta_secs}s"
    if eta_mins > 0:
        return f"{eta_mins}m{eta_secs}s"
    return f"{eta_secs}s"


def format_eta(remaining_seconds: Optional[float]) -> str:
    """Short ETA for the live status line; unknown renders as a placeholder."""
    if remaining_seconds is None:
        return ETA_PLACEHOLDER
    return format_seconds(remaining_seconds)


def get_eta_string(remaining_seconds: float) -> str:
    """Wall-clock completion time plus the remaining duration, for log entries."""
    completion_time = (datetime.now(timezone.utc) + timedelta(
        seconds=max(0.0, remaining_seconds))).strftime("%Y-%m-%d %H:%M:%S")
    return f"{completion_time} ({format_seconds(remaining_seconds)})"


def format_runtime(runtime_seconds: float) -> str:
    runtime_seconds = int(runtime_seconds)
    runtime_hours = runtime_seconds // 3600
    runtime_mins = (runtime_seconds % 3600) // 60
    runtime_secs = runtime_seconds % 60
    return f"{runtime_hours:02d}:{runtime_mins:02d}:{runtime_secs:02d}"
