"""
Functions to gather media information with ffprobe.

This module runs ffprobe once per file with JSON output and exposes the parts
the encoder needs: container duration, overall bitrate and a summary of the
video, audio and subtitle streams. Results are cached per path for the life of
a ``MediaProbe`` instance.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from shrinkray.utils import LogLevel, logger, system_util


class ProbeError(Exception):
    """Raised when ffprobe cannot describe a file."""
    pass


@dataclass
class StreamInfo:
    """Streams of one media file, grouped by type."""
    video: Optional[Dict[str, Any]] = None
    audio: List[Dict[str, Any]] = field(default_factory=list)
    subtitle: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def video_codec(self) -> str:
        return (self.video or {}).get("codec_name", "") or ""

    @property
    def resolution(self) -> str:
        if not self.video:
            return "?"
        return f"{self.video.get('width', '?')}x{self.video.get('height', '?')}"


def _to_float(value: Any) -> Optional[float]:
    """ffprobe reports numbers as strings and uses "N/A" for unknown values."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number <= 0:  # NaN or non-positive
        return None
    return number


class MediaProbe:
    """Thin ffprobe client."""

    def __init__(self, ffprobe: str = "ffprobe"):
        self.ffprobe = ffprobe
        self._cache: Dict[Path, Dict[str, Any]] = {}

    def probe(self, path: Path) -> Dict[str, Any]:
        """Return ffprobe's parsed JSON for ``path``."""
        path = Path(path)
        if path in self._cache:
            return self._cache[path]

        cmd = [
            self.ffprobe, "-v", "error",
            "-show_format", "-show_streams",
            "-of", "json",
            str(path),
        ]
        try:
            code, out, err = system_util.run_cmd(cmd)
        except OSError as e:
            raise ProbeError(f"Could not run {self.ffprobe}: {e}")
        if code != 0:
            logger.file_log("probe.failed", LogLevel.DEBUG, file=str(path), exit_code=code, error=err.strip())
            raise ProbeError(f"ffprobe exited with code {code} for {path.name}")
        try:
            data = json.loads(out)
        except ValueError as e:
            raise ProbeError(f"ffprobe returned invalid JSON for {path.name}: {e}")
        if not isinstance(data, dict):
            raise ProbeError(f"ffprobe returned unexpected output for {path.name}")

        self._cache[path] = data
        return data

    def get_duration(self, path: Path) -> Optional[float]:
        """Container duration in seconds, or None when unknown."""
        data = self.probe(path)
        duration = _to_float((data.get("format") or {}).get("duration"))
        if duration is None:
            # Some containers only report duration on the video stream
            streams = self.get_streams(path)
            if streams.video:
                duration = _to_float(streams.video.get("duration"))
        return duration

    def get_bitrate(self, path: Path) -> Optional[float]:
        """Overall bitrate in kbps, or None when unknown."""
        data = self.probe(path)
        bit_rate = _to_float((data.get("format") or {}).get("bit_rate"))
        if bit_rate is None:
            return None
        return bit_rate / 1000

    def get_streams(self, path: Path) -> StreamInfo:
        data = self.probe(path)
        info = StreamInfo()
        for stream in data.get("streams") or []:
            kind = stream.get("codec_type")
            if kind == "video" and info.video is None:
                # Skip cover art attached as a picture stream
                if (stream.get("disposition") or {}).get("attached_pic"):
                    continue
                info.video = stream
            elif kind == "audio":
                info.audio.append(stream)
            elif kind == "subtitle":
                info.subtitle.append(stream)
        return info
