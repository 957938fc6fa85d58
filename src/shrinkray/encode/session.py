"""
Batch encoding session.

Encodes a list of input files one after another with a single encoder family.
Each file gets a unique output path, its own supervised encoder process and,
on success, a ``JobOutcome`` with the size reduction. A failing file is logged
and skipped; a cancellation stops the whole batch at once. The summary is
printed when the batch ends either way.
"""
import shutil
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from shrinkray.config import Settings
from shrinkray.encode import size
from shrinkray.encode.families import EncoderFamily, Tool
from shrinkray.encode.job import EncodeJob, JobFailure, JobOutcome, SessionSummary, reduction_percent
from shrinkray.encode.supervisor import CancelToken, ProcessSupervisor, SupervisorResult, SupervisorState
from shrinkray.media.discovery import resolve_output_path
from shrinkray.media.probe import MediaProbe, ProbeError
from shrinkray.utils import STATUS_CANCELLED, STATUS_FAIL, STATUS_MOVED, STATUS_OK, LogLevel, logger
from shrinkray.utils.file_util import human_size

# Known failure signatures -> short hint shown on the console
_HANDBRAKE_HINTS = [
    ("No title found", "input could not be read as video"),
    ("nvenc", "NVENC encoder unavailable (no supported GPU/driver?)"),
    ("Invalid preset", "encoder preset not recognised"),
]
_FFMPEG_HINTS = [
    ("Unknown encoder", "encoder not built into this ffmpeg"),
    ("Cannot load nvcuda", "NVENC unavailable (no supported GPU/driver?)"),
    ("No NVENC capable devices", "NVENC unavailable (no supported GPU/driver?)"),
    ("Subtitle", "subtitle stream not supported by the output container"),
    ("Invalid data found", "input could not be read as video"),
]


def diagnose(family: EncoderFamily, tail: Sequence[str]) -> str:
    """Short reason for a failed encode, from the tool's last output lines."""
    hints = _HANDBRAKE_HINTS if family.tool is Tool.HANDBRAKE else _FFMPEG_HINTS
    text = "\n".join(tail)
    for needle, hint in hints:
        if needle.lower() in text.lower():
            return hint
    return tail[-1].strip() if tail else "no output"


class EncodingSession:
    """Runs one batch; owns every job and outcome it creates."""

    def __init__(self, settings: Settings, root: Path, probe: Optional[MediaProbe] = None,
                 cancel_token: Optional[CancelToken] = None,
                 supervisor_factory: Callable[..., ProcessSupervisor] = ProcessSupervisor,
                 show_status: bool = True):
        self.settings = settings
        self.root = root
        self.output_root = root / settings.output_dir
        self.holding_root = root / settings.holding_dir
        self.probe = probe or MediaProbe()
        self.cancel_token = cancel_token or CancelToken()
        self.supervisor_factory = supervisor_factory
        self.show_status = show_status

    def build_job(self, input_path: Path, family: EncoderFamily) -> EncodeJob:
        duration = 0.0
        subtitle_codecs = ()
        try:
            duration = self.probe.get_duration(input_path) or 0.0
            streams = self.probe.get_streams(input_path)
            subtitle_codecs = tuple(s.get("codec_name", "") for s in streams.subtitle)
        except ProbeError as e:
            logger.log("probe.failed", LogLevel.WARN, file=input_path.name, error=str(e))

        output_path = resolve_output_path(input_path, self.root, self.output_root, family.codec_token)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        return EncodeJob(
            input_path=input_path,
            output_path=output_path,
            family=family,
            quality=family.quality(self.settings),
            duration=duration,
            subtitle_codecs=subtitle_codecs,
        )

    def run(self, files: List[Path], family: EncoderFamily) -> SessionSummary:
        summary = SessionSummary()
        logger.log("session.start", LogLevel.INFO, files=len(files), method=family.label,
                   quality=family.quality(self.settings), move_originals=self.settings.move_originals)

        for index, input_path in enumerate(files, 1):
            if self.cancel_token.cancelled:
                summary.cancelled = True
                break

            logger.safe_print(f"\n[{index}/{len(files)}] {input_path.name}")
            try:
                job = self.build_job(input_path, family)
            except OSError as e:
                self._record_failure(summary, input_path, f"could not prepare output: {e}")
                continue

            projected = size.project_for_file(input_path, self.probe, family, job.quality)
            logger.log("encode.start", LogLevel.INFO, file=input_path.name, dst=job.output_path.name,
                       duration=round(job.duration, 1), projected=human_size(projected))

            cmd = family.build_command(job, self.settings)
            supervisor = self.supervisor_factory(job, cmd, self.settings, cancel_token=self.cancel_token,
                                                 show_status=self.show_status)
            try:
                result = supervisor.run()
            except KeyboardInterrupt:
                self._remove_partial(job)
                logger.log("encode.interrupted", LogLevel.WARN, file=input_path.name,
                           status=STATUS_CANCELLED, completed=len(summary.outcomes))
                raise

            if result.state is SupervisorState.CANCELLED:
                self._remove_partial(job)
                summary.cancelled = True
                logger.log("encode.cancelled", LogLevel.WARN, file=input_path.name,
                           status=STATUS_CANCELLED, completed=len(summary.outcomes))
                break

            if result.state is SupervisorState.FAILED:
                self._remove_partial(job)
                self._record_failure(summary, input_path,
                                     f"{family.executable} could not be started: {result.error}")
                continue

            if result.exit_code != 0:
                self._remove_partial(job)
                logger.file_log("encode.output_tail", LogLevel.ERROR, file=input_path.name,
                                tail="\n".join(result.tail))
                self._record_failure(summary, input_path,
                                     f"{family.executable} exit code {result.exit_code}: "
                                     f"{diagnose(family, result.tail)}",
                                     exit_code=result.exit_code)
                continue

            outcome = self._record_success(job, result)
            if outcome is None:
                self._record_failure(summary, input_path, "encoder reported success but wrote no output")
                continue
            summary.outcomes.append(outcome)

        print_summary(summary)
        logger.log("session.end", LogLevel.INFO, ok=len(summary.outcomes), failed=len(summary.failures),
                   cancelled=summary.cancelled, input=human_size(summary.total_input),
                   output=human_size(summary.total_output), reduction=f"{summary.overall_reduction}%")
        return summary

    def _record_success(self, job: EncodeJob, result: SupervisorResult) -> Optional[JobOutcome]:
        try:
            input_size = job.input_path.stat().st_size
            output_size = job.output_path.stat().st_size
        except OSError as e:
            logger.file_log("encode.stat_failed", LogLevel.ERROR, file=job.input_path.name, error=str(e))
            return None

        outcome = JobOutcome(
            job=job,
            exit_code=result.exit_code,
            input_size=input_size,
            output_size=output_size,
            reduction_percent=reduction_percent(input_size, output_size),
        )
        logger.log("encode.complete", LogLevel.INFO, file=job.input_path.name, status=STATUS_OK,
                   input=human_size(input_size), output=human_size(output_size),
                   reduction=f"{outcome.reduction_percent}%")

        if self.settings.move_originals:
            self._relocate_original(job.input_path)
        return outcome

    def _relocate_original(self, input_path: Path) -> None:
        try:
            rel = input_path.resolve().relative_to(self.root.resolve())
        except ValueError:
            rel = Path(input_path.name)
        target = self.holding_root / rel
        counter = 1
        while target.exists():
            target = target.with_name(f"{rel.stem} ({counter}){rel.suffix}")
            counter += 1
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(input_path), str(target))
            logger.log("original.moved", LogLevel.INFO, file=input_path.name, status=STATUS_MOVED,
                       dst=str(target))
        except (OSError, shutil.Error) as e:
            logger.log("original.move_failed", LogLevel.WARN, file=input_path.name, error=str(e))

    @staticmethod
    def _remove_partial(job: EncodeJob) -> None:
        if job.output_path.exists():
            try:
                job.output_path.unlink()
            except OSError as e:
                logger.log("encode.cleanup_failed", LogLevel.WARN, file=job.output_path.name, error=str(e))

    @staticmethod
    def _record_failure(summary: SessionSummary, input_path: Path, reason: str,
                        exit_code: Optional[int] = None) -> None:
        summary.failures.append(JobFailure(input_path, reason, exit_code))
        logger.log("encode.failed", LogLevel.ERROR, file=input_path.name, status=STATUS_FAIL, reason=reason)


def print_summary(summary: SessionSummary) -> None:
    logger.safe_print("\n=== Session summary ===")
    if summary.cancelled:
        logger.safe_print("Batch cancelled; files below were completed before the cancel.")
    for outcome in summary.outcomes:
        logger.safe_print(
            f"[{STATUS_OK}] {outcome.job.input_path.name}: {human_size(outcome.input_size)} -> "
            f"{human_size(outcome.output_size)} ({outcome.reduction_percent}%)"
        )
    for failure in summary.failures:
        logger.safe_print(f"[{STATUS_FAIL}] {failure.input_path.name}: {failure.reason}")
    if summary.outcomes:
        logger.safe_print(
            f"\nTotal: {human_size(summary.total_input)} -> {human_size(summary.total_output)} "
            f"({summary.overall_reduction}% smaller)"
        )
    logger.safe_print(f"Done. OK={len(summary.outcomes)} FAIL={len(summary.failures)} "
                      f"CANCELLED={'yes' if summary.cancelled else 'no'}")
