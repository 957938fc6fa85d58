"""
Maintenance tools behind the Advanced menu.

- analyze: probe every input and show what an encode would likely produce
- fix_subtitle_flags: clear the ``default`` disposition on subtitle streams of
  encoded files so players stop forcing subtitles on
- clean_temp: empty the temp folder and prune stale log files
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from shrinkray.config import Settings
from shrinkray.encode import size
from shrinkray.encode.families import EncoderFamily
from shrinkray.media.probe import MediaProbe, ProbeError
from shrinkray.utils import LOG_RETENTION_DAYS, STATUS_FAIL, STATUS_OK, STATUS_SKIP, LogLevel, logger, system_util
from shrinkray.utils.file_util import human_size
from shrinkray.utils.time_util import format_runtime


@dataclass
class FileAnalysis:
    path: Path
    input_size: int
    codec: str = "?"
    resolution: str = "?"
    duration: Optional[float] = None
    bitrate_kbps: Optional[float] = None
    audio_streams: int = 0
    subtitle_streams: int = 0
    projections: Dict[EncoderFamily, int] = field(default_factory=dict)
    error: Optional[str] = None


def analyze_file(path: Path, probe: MediaProbe, settings: Settings) -> FileAnalysis:
    """Probe one file and project its output size for every encoder family."""
    try:
        input_size = path.stat().st_size
    except OSError as e:
        return FileAnalysis(path=path, input_size=0, error=str(e))

    analysis = FileAnalysis(path=path, input_size=input_size)
    try:
        streams = probe.get_streams(path)
        analysis.codec = streams.video_codec or "?"
        analysis.resolution = streams.resolution
        analysis.audio_streams = len(streams.audio)
        analysis.subtitle_streams = len(streams.subtitle)
        analysis.duration = probe.get_duration(path)
        analysis.bitrate_kbps = probe.get_bitrate(path)
    except ProbeError as e:
        analysis.error = str(e)

    for family in EncoderFamily:
        analysis.projections[family] = size.project(
            input_size, analysis.duration, family, family.quality(settings),
            bitrate_kbps=analysis.bitrate_kbps,
        )
    return analysis


def analyze(files: Sequence[Path], probe: MediaProbe, settings: Settings) -> List[FileAnalysis]:
    results = []
    for path in files:
        analysis = analyze_file(path, probe, settings)
        results.append(analysis)
        print_analysis(analysis)
    logger.log("analyze.done", LogLevel.INFO, files=len(results),
               failed=sum(1 for a in results if a.error))
    return results


def print_analysis(analysis: FileAnalysis) -> None:
    logger.safe_print(f"\n{analysis.path.name}  ({human_size(analysis.input_size)})")
    if analysis.error:
        logger.safe_print(f"  probe failed: {analysis.error}")
    duration = format_runtime(analysis.duration) if analysis.duration else "unknown"
    bitrate = f"{analysis.bitrate_kbps:.0f} kbps" if analysis.bitrate_kbps else "unknown"
    logger.safe_print(f"  video: {analysis.codec} {analysis.resolution}  duration: {duration}  bitrate: {bitrate}")
    logger.safe_print(f"  audio streams: {analysis.audio_streams}  subtitle streams: {analysis.subtitle_streams}")
    for family, projected in analysis.projections.items():
        logger.safe_print(f"  {family.label:<14} ~{human_size(projected)}")


def default_subtitle_indexes(path: Path, probe: MediaProbe) -> List[int]:
    """Positions (within the subtitle streams) flagged as default."""
    streams = probe.get_streams(path)
    return [i for i, stream in enumerate(streams.subtitle)
            if (stream.get("disposition") or {}).get("default")]


def clear_subtitle_defaults(path: Path, temp_root: Path, ffmpeg: str = "ffmpeg") -> bool:
    """
    Remux ``path`` with every stream copied and subtitle dispositions cleared.

    The remux is written to ``temp_root`` first and only replaces the original
    once ffmpeg has exited cleanly.
    """
    temp_root.mkdir(parents=True, exist_ok=True)
    tmp = temp_root / f"{path.stem}.subfix{path.suffix}"
    cmd = [
        ffmpeg, "-hide_banner", "-nostdin", "-y",
        "-i", str(path),
        "-map", "0",
        "-c", "copy",
        "-disposition:s", "0",
        str(tmp),
    ]
    logger.file_log("subfix.cmd", LogLevel.DEBUG, cmd=" ".join(cmd))
    try:
        code, _, err = system_util.run_cmd(cmd)
    except OSError as e:
        logger.log("subfix.failed", LogLevel.ERROR, file=path.name, status=STATUS_FAIL, error=str(e))
        return False

    if code != 0:
        tmp.unlink(missing_ok=True)
        logger.file_log("subfix.output_tail", LogLevel.ERROR, file=path.name, tail=err[-2000:])
        logger.log("subfix.failed", LogLevel.ERROR, file=path.name, status=STATUS_FAIL, exit_code=code)
        return False

    try:
        tmp.replace(path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        logger.log("subfix.failed", LogLevel.ERROR, file=path.name, status=STATUS_FAIL, error=str(e))
        return False
    logger.log("subfix.done", LogLevel.INFO, file=path.name, status=STATUS_OK)
    return True


def fix_subtitle_flags(files: Sequence[Path], probe: MediaProbe, temp_root: Path,
                       ffmpeg: str = "ffmpeg") -> Tuple[int, int, int]:
    """Returns (fixed, skipped, failed)."""
    fixed = skipped = failed = 0
    for path in files:
        try:
            flagged = default_subtitle_indexes(path, probe)
        except ProbeError as e:
            logger.log("subfix.probe_failed", LogLevel.WARN, file=path.name, error=str(e))
            failed += 1
            continue
        if not flagged:
            logger.log("subfix.skip", LogLevel.DEBUG, file=path.name, status=STATUS_SKIP)
            skipped += 1
            continue
        if clear_subtitle_defaults(path, temp_root, ffmpeg):
            fixed += 1
        else:
            failed += 1
    return fixed, skipped, failed


def clean_temp(temp_root: Path, log_root: Optional[Path] = None,
               retention_days: int = LOG_RETENTION_DAYS) -> Tuple[int, int]:
    """Delete everything under ``temp_root`` and prune old logs. Returns (files, logs) removed."""
    removed = 0
    if temp_root.exists():
        # Deepest paths first so folders are empty when reached
        for p in sorted(temp_root.rglob("*"), key=lambda p: len(p.parts), reverse=True):
            try:
                if p.is_dir():
                    p.rmdir()
                else:
                    p.unlink()
                    removed += 1
            except OSError as e:
                logger.log("clean.failed", LogLevel.WARN, path=str(p), error=str(e))

    pruned = logger.prune_logs(log_root, retention_days) if log_root is not None else 0
    logger.log("clean.done", LogLevel.INFO, temp_files=removed, logs=pruned)
    return removed, pruned
