"""
Runs one encoder process and shows its progress.

The encoder's stdout and stderr are each drained by a daemon reader thread
into a single queue, so a chatty stream can never fill its pipe and stall the
encoder. The supervising loop pulls lines from that queue with a short
timeout, feeds progress lines to the parser and ETA estimator, redraws a
single tqdm status line and checks the cancel token on every pass.

States: NOT_STARTED -> RUNNING -> COMPLETED | CANCELLED | FAILED.
COMPLETED carries the exit code, which may be non-zero (the tool ran and
rejected the input). FAILED means the tool could not be started at all.
"""
import queue
import subprocess
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, IO, List, Optional

from tqdm import tqdm

from shrinkray.config import Settings
from shrinkray.encode.eta import EtaEstimator, ProgressSample
from shrinkray.encode.job import EncodeJob
from shrinkray.encode.progress import ProgressContext, ToolKind, parse_progress
from shrinkray.utils import DIAGNOSTIC_TAIL_LINES, POLL_INTERVAL, LogLevel, logger, time_util

PROGRESS_LOG_INTERVAL = 60  # seconds between progress entries in the log file
READER_JOIN_TIMEOUT = 2.0


class SupervisorState(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class CancelToken:
    """Cooperative cancellation flag shared between a watcher and the supervisor."""

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "requested") -> None:
        if not self._event.is_set():
            self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class SupervisorResult:
    state: SupervisorState
    exit_code: Optional[int] = None
    error: Optional[str] = None
    tail: List[str] = field(default_factory=list)
    elapsed: float = 0.0
    last_percent: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.state is SupervisorState.COMPLETED and self.exit_code == 0


class StatusLine:
    """Single in-place console line: percentage, bar and ETA (or elapsed time only)."""

    def __init__(self, label: str, with_percent: bool, enabled: bool = True):
        self.with_percent = with_percent
        if with_percent:
            self._bar = tqdm(total=100, desc=label, disable=not enabled, leave=True,
                             bar_format="{desc}: {percentage:5.1f}%|{bar}| [{elapsed}{postfix}]")
            self._bar.set_postfix_str(f"ETA {time_util.ETA_PLACEHOLDER}", refresh=False)
        else:
            self._bar = tqdm(total=None, desc=label, disable=not enabled, leave=True,
                             bar_format="{desc}: [elapsed {elapsed}{postfix}]")

    def update(self, percent: float, remaining: Optional[float]) -> None:
        self._bar.n = percent
        self._bar.set_postfix_str(f"ETA {time_util.format_eta(remaining)}", refresh=False)
        self._bar.refresh()

    def tick(self) -> None:
        self._bar.refresh()

    def close(self) -> None:
        self._bar.close()


def _pump(stream: IO[str], name: str, lines: "queue.Queue") -> None:
    """Reader thread body: forward every line, then a None marker at EOF."""
    try:
        for line in iter(stream.readline, ""):
            lines.put((name, line))
    except (OSError, ValueError):
        # Pipe closed underneath us after a kill
        pass
    finally:
        lines.put((name, None))


def _short_label(name: str, width: int = 40) -> str:
    return name if len(name) <= width else name[:width - 3] + "..."


class ProcessSupervisor:
    """
    Supervises a single encoder invocation.

    One instance per job; ``run`` may only be called once.
    """

    def __init__(self, job: EncodeJob, cmd: List[str], settings: Settings,
                 cancel_token: Optional[CancelToken] = None, show_status: bool = True,
                 poll_interval: float = POLL_INTERVAL, clock: Callable[[], float] = time.monotonic):
        self.job = job
        self.cmd = cmd
        self.settings = settings
        self.cancel_token = cancel_token or CancelToken()
        self.show_status = show_status
        self.poll_interval = poll_interval
        self.clock = clock
        self.state = SupervisorState.NOT_STARTED
        self.process: Optional[subprocess.Popen] = None

        self._context = ProgressContext(job.family.tool_kind, job.duration)
        self._tail = deque(maxlen=DIAGNOSTIC_TAIL_LINES)
        self._estimator: Optional[EtaEstimator] = None
        self._status: Optional[StatusLine] = None
        self._last_rendered: Optional[float] = None
        self._last_progress_log = 0.0
        self._readers: List[threading.Thread] = []

    def run(self) -> SupervisorResult:
        if self.state is not SupervisorState.NOT_STARTED:
            raise RuntimeError(f"supervisor already ran (state={self.state.value})")

        logger.file_log("encode.command", LogLevel.DEBUG, file=self.job.input_path.name,
                        cmd=" ".join(self.cmd))
        started = self.clock()
        try:
            self.process = process = subprocess.Popen(
                self.cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            self.state = SupervisorState.FAILED
            logger.file_log("encode.spawn_failed", LogLevel.ERROR, file=self.job.input_path.name,
                            executable=self.cmd[0], error=repr(e))
            return SupervisorResult(self.state, error=str(e))

        self.state = SupervisorState.RUNNING
        self._estimator = EtaEstimator(started_at=started)
        self._last_progress_log = started
        with_percent = self.job.duration > 0 or self._context.tool_kind is ToolKind.PERCENT
        self._status = StatusLine(_short_label(self.job.input_path.name), with_percent, enabled=self.show_status)
        try:
            exit_code = self._monitor(process)
        except KeyboardInterrupt:
            # The child does not always exit on Ctrl+C
            self._kill(process)
            self.state = SupervisorState.CANCELLED
            self.cancel_token.cancel("interrupted")
            raise
        finally:
            self._status.close()
            self._close_pipes(process)

        elapsed = self.clock() - started
        if self.state is SupervisorState.CANCELLED:
            logger.file_log("encode.cancelled", LogLevel.INFO, file=self.job.input_path.name,
                            reason=self.cancel_token.reason, elapsed=time_util.format_runtime(elapsed))
            return SupervisorResult(self.state, exit_code=exit_code, tail=list(self._tail),
                                    elapsed=elapsed, last_percent=self._last_rendered)

        self.state = SupervisorState.COMPLETED
        return SupervisorResult(self.state, exit_code=exit_code, tail=list(self._tail),
                                elapsed=elapsed, last_percent=self._last_rendered)

    def _monitor(self, process: subprocess.Popen) -> Optional[int]:
        lines: "queue.Queue" = queue.Queue()
        self._readers = readers = [
            threading.Thread(target=_pump, args=(process.stdout, "stdout", lines), daemon=True),
            threading.Thread(target=_pump, args=(process.stderr, "stderr", lines), daemon=True),
        ]
        for reader in readers:
            reader.start()

        open_streams = len(readers)
        last_tick = self.clock()
        while True:
            if self.cancel_token.cancelled:
                self._kill(process)
                self.state = SupervisorState.CANCELLED
                return process.returncode

            try:
                name, line = lines.get(timeout=self.poll_interval)
            except queue.Empty:
                if process.poll() is not None:
                    break
                now = self.clock()
                if now - last_tick >= 1.0:
                    self._status.tick()
                    last_tick = now
                continue

            if line is None:
                open_streams -= 1
                if open_streams == 0:
                    break
                continue
            self._handle_line(name, line)

        exit_code = process.wait()
        for reader in readers:
            reader.join(timeout=READER_JOIN_TIMEOUT)
        # Drain whatever arrived between the exit and EOF
        while True:
            try:
                name, line = lines.get_nowait()
            except queue.Empty:
                break
            if line is not None:
                self._handle_line(name, line)
        return exit_code

    def _close_pipes(self, process: subprocess.Popen) -> None:
        for reader in self._readers:
            reader.join(timeout=READER_JOIN_TIMEOUT)
        if any(reader.is_alive() for reader in self._readers):
            # A grandchild still holds the pipe; leave it to the reader threads
            return
        for stream in (process.stdout, process.stderr):
            if stream is not None:
                stream.close()

    def _kill(self, process: subprocess.Popen) -> None:
        if process.poll() is None:
            process.kill()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            logger.log("encode.kill_timeout", LogLevel.WARN, file=self.job.input_path.name, pid=process.pid)

    def _handle_line(self, stream_name: str, line: str) -> None:
        text = line.rstrip("\r\n")
        if not text.strip():
            return
        self._tail.append(text)
        if self.settings.verbose:
            logger.raw(f"[{stream_name}] {text}")

        if stream_name != self.job.family.progress_stream:
            return
        percent = parse_progress(text, self._context)
        if percent is None:
            return
        if self._last_rendered is not None and percent <= self._last_rendered:
            return

        now = self.clock()
        remaining = self._estimator.observe(ProgressSample(percent, now))
        self._last_rendered = percent
        self._status.update(percent, remaining)

        if now - self._last_progress_log >= PROGRESS_LOG_INTERVAL:
            logger.file_log("encode.progress", LogLevel.INFO, file=self.job.input_path.name,
                            pct=round(percent, 1),
                            eta=time_util.get_eta_string(remaining) if remaining is not None else "N/A")
            self._last_progress_log = now
