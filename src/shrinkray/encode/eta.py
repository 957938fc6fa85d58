"""
Smoothed ETA from a sliding window of progress samples.

A global average (elapsed / percent) overestimates badly while an encoder is
still warming up, so the estimate uses the rate across the most recent samples
only and falls back to the global average when that rate is unusable.
"""
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from shrinkray.utils import ETA_WINDOW_SIZE


@dataclass(frozen=True)
class ProgressSample:
    percent: float
    observed_at: float


class EtaEstimator:
    """
    Remaining-time estimator for one job.

    Samples must arrive with strictly increasing percentages; anything else
    (a repeated line, a tool restarting at 0 %) is ignored.
    """

    def __init__(self, window: int = ETA_WINDOW_SIZE, started_at: Optional[float] = None):
        if window < 2:
            raise ValueError("window must hold at least two samples")
        self.started_at = time.monotonic() if started_at is None else started_at
        self._window: Deque[ProgressSample] = deque(maxlen=window)
        self._remaining: Optional[float] = None

    @property
    def samples(self) -> Tuple[ProgressSample, ...]:
        return tuple(self._window)

    @property
    def last_percent(self) -> Optional[float]:
        return self._window[-1].percent if self._window else None

    @property
    def remaining(self) -> Optional[float]:
        """Latest estimate in seconds; None while unknown."""
        return self._remaining

    def observe(self, sample: ProgressSample) -> Optional[float]:
        """Record ``sample`` and return the estimated seconds remaining (None if unknown)."""
        last = self.last_percent
        if last is not None and sample.percent <= last:
            return self._remaining
        self._window.append(sample)
        self._remaining = self._estimate()
        return self._remaining

    def _whole_run_average(self, newest: ProgressSample) -> Optional[float]:
        if newest.percent <= 0:
            return None
        elapsed = newest.observed_at - self.started_at
        return elapsed / newest.percent * (100 - newest.percent)

    def _estimate(self) -> Optional[float]:
        newest = self._window[-1]
        remaining = None
        if len(self._window) >= 2:
            oldest = self._window[0]
            elapsed = newest.observed_at - oldest.observed_at
            if elapsed > 0:
                rate = (newest.percent - oldest.percent) / elapsed
                if rate > 0:
                    remaining = (100 - newest.percent) / rate
        if remaining is None:
            remaining = self._whole_run_average(newest)
        if remaining is None:
            return None
        return max(0.0, remaining)
