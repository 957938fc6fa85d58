"""
Rough pre-encode estimate of output size.

The estimate is advisory only (shown by the analyze menu and logged at job
start). It multiplies the input bitrate by an empirical compression factor
chosen by tool, accelerator and quality, then adds an allowance for audio and
container overhead when audio is copied unchanged. When the duration is
unknown it falls back to a fixed 0.7 ratio of the input size.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from shrinkray.encode.families import Accelerator, EncoderFamily, Tool
from shrinkray.media.probe import MediaProbe, ProbeError
from shrinkray.utils import AUDIO_OVERHEAD_RATIO, FALLBACK_SIZE_RATIO, LogLevel, logger

# (upper quality bound, factor); lower RF/CRF/CQ means higher quality and a bigger file
COMPRESSION_FACTORS: Dict[Tuple[Tool, Accelerator], List[Tuple[int, float]]] = {
    (Tool.HANDBRAKE, Accelerator.CPU): [(16, 0.65), (18, 0.58), (20, 0.50), (22, 0.44), (24, 0.38), (28, 0.33), (51, 0.30)],
    (Tool.HANDBRAKE, Accelerator.GPU): [(16, 0.70), (18, 0.64), (20, 0.57), (22, 0.51), (24, 0.45), (28, 0.38), (51, 0.33)],
    (Tool.FFMPEG, Accelerator.CPU): [(16, 0.66), (18, 0.60), (20, 0.52), (22, 0.46), (24, 0.40), (28, 0.34), (51, 0.30)],
    (Tool.FFMPEG, Accelerator.GPU): [(16, 0.70), (18, 0.65), (20, 0.58), (22, 0.52), (24, 0.46), (28, 0.40), (51, 0.35)],
}


def _to_number(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number <= 0:
        return None
    return number


def compression_factor(family: EncoderFamily, quality: Any) -> float:
    buckets = COMPRESSION_FACTORS[(family.tool, family.accelerator)]
    q = _to_number(quality)
    if q is None:
        # Unknown quality: use the middle of the table
        return buckets[len(buckets) // 2][1]
    for upper, factor in buckets:
        if q <= upper:
            return factor
    return buckets[-1][1]


def project(input_size: Any, duration: Any, family: EncoderFamily, quality: Any,
            bitrate_kbps: Any = None, audio_copied: bool = True) -> int:
    """Estimated output size in bytes."""
    size = _to_number(input_size) or 0.0
    seconds = _to_number(duration)
    if seconds is None:
        return int(FALLBACK_SIZE_RATIO * size)

    kbps = _to_number(bitrate_kbps)
    bits_per_second = kbps * 1000 if kbps is not None else size * 8 / seconds

    estimate = bits_per_second * seconds / 8 * compression_factor(family, quality)
    if audio_copied:
        estimate += AUDIO_OVERHEAD_RATIO * size
    return int(round(estimate))


def project_for_file(path: Path, probe: MediaProbe, family: EncoderFamily, quality: Any) -> int:
    """Probe ``path`` and project its output size; probe failures use the fallback ratio."""
    try:
        input_size = path.stat().st_size
    except OSError as e:
        logger.log("project.stat_failed", LogLevel.DEBUG, file=path.name, error=str(e))
        return 0

    try:
        duration = probe.get_duration(path)
        bitrate = probe.get_bitrate(path)
    except (ProbeError, OSError) as e:
        logger.log("project.fallback", LogLevel.DEBUG, file=path.name, error=str(e))
        return int(FALLBACK_SIZE_RATIO * input_size)

    return project(input_size, duration, family, quality, bitrate_kbps=bitrate)
