"""Encoding: progress monitoring and batch orchestration.

This package provides two levels of functionality:
- Leaves: progress parsing, ETA estimation, size projection and the encoder
  family definitions (command lines per tool and accelerator).
- Orchestration: the process supervisor (one encoder run with a live status
  line and cancellation) and the session controller (a whole batch).
"""

from .progress import (
    ProgressContext,
    ToolKind,
    parse_progress,
)
from .eta import (
    EtaEstimator,
    ProgressSample,
)
from .families import (
    Accelerator,
    EncoderFamily,
    Tool,
    family_by_index,
)
from .job import (
    EncodeJob,
    JobFailure,
    JobOutcome,
    SessionSummary,
    reduction_percent,
)
from .size import (
    project,
    project_for_file,
)
from .supervisor import (
    CancelToken,
    ProcessSupervisor,
    SupervisorResult,
    SupervisorState,
)
from .session import (
    EncodingSession,
    print_summary,
)

__all__ = [
    # Progress
    "ProgressContext",
    "ToolKind",
    "parse_progress",
    "EtaEstimator",
    "ProgressSample",
    # Families
    "Accelerator",
    "EncoderFamily",
    "Tool",
    "family_by_index",
    # Jobs
    "EncodeJob",
    "JobFailure",
    "JobOutcome",
    "SessionSummary",
    "reduction_percent",
    # Size
    "project",
    "project_for_file",
    # Running
    "CancelToken",
    "ProcessSupervisor",
    "SupervisorResult",
    "SupervisorState",
    "EncodingSession",
    "print_summary",
]
