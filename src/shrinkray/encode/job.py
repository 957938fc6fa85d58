"""Records passed between the session controller and the supervisor."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from shrinkray.encode.families import EncoderFamily


@dataclass(frozen=True)
class EncodeJob:
    input_path: Path
    output_path: Path
    family: EncoderFamily
    quality: int
    duration: float = 0.0  # seconds; 0 when the probe could not tell
    subtitle_codecs: Tuple[str, ...] = ()  # in input order, as reported by ffprobe


def reduction_percent(input_size: int, output_size: int) -> int:
    """Whole-number space saving; 0 for an empty input."""
    if input_size == 0:
        return 0
    return round((input_size - output_size) / input_size * 100)


@dataclass(frozen=True)
class JobOutcome:
    job: EncodeJob
    exit_code: int
    input_size: int
    output_size: int
    reduction_percent: int


@dataclass(frozen=True)
class JobFailure:
    input_path: Path
    reason: str
    exit_code: Optional[int] = None


@dataclass
class SessionSummary:
    """Everything one batch produced; discarded once displayed."""
    outcomes: List[JobOutcome] = field(default_factory=list)
    failures: List[JobFailure] = field(default_factory=list)
    cancelled: bool = False

    @property
    def total_input(self) -> int:
        return sum(o.input_size for o in self.outcomes)

    @property
    def total_output(self) -> int:
        return sum(o.output_size for o in self.outcomes)

    @property
    def overall_reduction(self) -> int:
        return reduction_percent(self.total_input, self.total_output)
