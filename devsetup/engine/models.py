# devsetup/engine/models.py
# -*- coding: utf-8 -*-
"""
Result and state types produced by a provisioning run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

# Exit codes above 125 collide with shell conventions for signals.
MAX_STEP_EXIT_CODE = 125


class StepStatus(str, Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RunState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RunResult:
    """Outcome of one step within a run. Never mutated after creation."""

    step_name: str
    status: StepStatus
    message: str = ""
    timestamp: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class RunSummary:
    """
    Aggregate view of a finished run.

    ``failed_index`` is the 1-based position of the critical step that
    stopped the run, counted over the full step list even when the run
    started part-way through it.
    """

    results: List[RunResult]
    state: RunState
    failed_step: Optional[str] = None
    failed_index: Optional[int] = None

    @property
    def exit_code(self) -> int:
        if self.state == RunState.COMPLETED:
            return 0
        if self.failed_index is None:
            return 1
        return min(max(self.failed_index, 1), MAX_STEP_EXIT_CODE)

    def count(self, status: StepStatus) -> int:
        return sum(1 for result in self.results if result.status == status)
