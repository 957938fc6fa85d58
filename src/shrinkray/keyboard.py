"""
Console keypress watcher.

Watches stdin on a background thread and trips a ``CancelToken`` when the
cancel key is pressed. On POSIX the terminal is switched to cbreak mode for
the duration so single keys arrive without Enter; on Windows ``msvcrt`` is
polled. When stdin is not a terminal the watcher does nothing and the token
can only be tripped programmatically.
"""
import os
import sys
import threading
import time
from typing import Optional

from shrinkray.encode.supervisor import CancelToken
from shrinkray.utils import LogLevel, logger

if os.name == "nt":
    import msvcrt
else:
    import select
    import termios
    import tty

POLL_SECONDS = 0.1
READ_SIZE = 64


class KeypressWatcher:
    """Context manager: ``with KeypressWatcher(token, "q"): session.run(...)``."""

    def __init__(self, token: CancelToken, key: str = "q", stream=None):
        self.token = token
        self.key = key.lower()
        self.stream = stream if stream is not None else sys.stdin
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._saved_attrs = None

    @property
    def active(self) -> bool:
        return self._thread is not None

    def __enter__(self) -> "KeypressWatcher":
        try:
            interactive = self.stream.isatty()
        except (AttributeError, ValueError):
            interactive = False
        if not interactive:
            logger.log("keyboard.inactive", LogLevel.DEBUG, reason="stdin is not a terminal")
            return self

        if os.name != "nt":
            fd = self.stream.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        self._thread = threading.Thread(target=self._watch, name="keypress-watcher", daemon=True)
        self._thread.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self._saved_attrs is not None:
            termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def _matches(self, ch: str) -> bool:
        return ch.lower() == self.key

    def _watch(self) -> None:
        if os.name == "nt":
            self._watch_windows()
        else:
            self._watch_posix()

    def _watch_posix(self) -> None:
        # Read the fd directly: a buffered read would hide keys that arrive together
        fd = self.stream.fileno()
        while not self._stop.is_set() and not self.token.cancelled:
            try:
                ready, _, _ = select.select([fd], [], [], POLL_SECONDS)
                if not ready:
                    continue
                data = os.read(fd, READ_SIZE)
            except (OSError, ValueError) as e:
                logger.log("keyboard.stopped", LogLevel.DEBUG, error=str(e))
                return
            if not data:
                logger.log("keyboard.stopped", LogLevel.DEBUG, error="end of input")
                return
            if any(self._matches(ch) for ch in data.decode(errors="ignore")):
                self.token.cancel("keypress")

    def _watch_windows(self) -> None:
        while not self._stop.is_set() and not self.token.cancelled:
            if msvcrt.kbhit():
                ch = msvcrt.getwch()
                if self._matches(ch):
                    self.token.cancel("keypress")
            time.sleep(POLL_SECONDS / 2)
