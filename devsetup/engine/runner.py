# devsetup/engine/runner.py
# -*- coding: utf-8 -*-
"""
Sequential, fail-fast execution of provisioning steps.

For each step the runner asks ``check()`` first and only calls ``action()``
when the step is not yet satisfied. A failing critical step ends the run;
a failing non-critical step is recorded and the run moves on. Failures to
write user configuration always end the run.
"""

import logging
import subprocess
from typing import List, Optional, Sequence

import requests

from devsetup.common.command_utils import get_symbols, log_message
from devsetup.config_models import AppSettings
from devsetup.engine.errors import (
    ActionError,
    ConfigWriteError,
    ProbeError,
    ProvisioningError,
)
from devsetup.engine.models import RunResult, RunState, RunSummary, StepStatus
from devsetup.engine.state_store import StateStore

module_logger = logging.getLogger(__name__)

DRY_RUN_MESSAGE = "dry run: action not executed"
ALREADY_SATISFIED_MESSAGE = "already satisfied"

# Raised by actions for failed commands, missing tools and failed downloads.
ACTION_FAILURES = (
    ProvisioningError,
    subprocess.CalledProcessError,
    OSError,
    requests.RequestException,
)


def describe_failure(error: BaseException) -> str:
    """One message naming what failed, followed by any captured output."""
    if isinstance(error, subprocess.CalledProcessError):
        cmd = (
            subprocess.list2cmdline(error.cmd)
            if isinstance(error.cmd, list)
            else str(error.cmd)
        )
        message = f"Command `{cmd}` failed (rc {error.returncode})"
        output = "\n".join(
            part.strip()
            for part in (error.stdout, error.stderr)
            if isinstance(part, str) and part.strip()
        )
    elif isinstance(error, ActionError):
        message = str(error)
        output = (error.output or "").strip()
    elif isinstance(error, FileNotFoundError) and error.filename:
        message = f"Command or file not found: {error.filename}"
        output = ""
    else:
        message = str(error) or error.__class__.__name__
        output = ""
    return f"{message}\n{output}" if output else message


class StepRunner:
    """
    Runs steps in order and owns the results of one invocation.

    A step is any object with ``name``, ``critical``, ``check()`` and
    ``action()``; ``description`` is optional.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        state_store: Optional[StateStore] = None,
        dry_run: bool = False,
    ):
        self.app_settings = app_settings
        self.logger = logger or module_logger
        self.state_store = state_store
        self.dry_run = dry_run
        self.state = RunState.PENDING
        self.current_index: Optional[int] = None
        self.results: List[RunResult] = []
        self.failed_step: Optional[str] = None
        self.failed_index: Optional[int] = None

    def _log(self, message: str, level: str = "info") -> None:
        log_message(message, level, self.logger, self.app_settings)

    def _record(self, step_name: str, status: StepStatus, message: str = "") -> RunResult:
        result = RunResult(step_name=step_name, status=status, message=message)
        self.results.append(result)
        return result

    def _is_satisfied(self, step) -> bool:
        try:
            return bool(step.check())
        except ProbeError as e:
            self._log(
                f"{get_symbols(self.app_settings).get('warning', '!')} Could not inspect state for '{step.name}': {e}. Treating it as not satisfied.",
                "warning",
            )
            return False

    def run(self, steps: Sequence, from_step: Optional[str] = None) -> List[RunResult]:
        """
        Run ``steps`` in order.

        Args:
            steps: The ordered steps of the run.
            from_step: Name of the step to start at. Earlier steps are not
                evaluated and produce no results.

        Returns:
            The results recorded, one per evaluated step.

        Raises:
            KeyError: If ``from_step`` names no step. Raised before any step
                is evaluated.
        """
        names = [step.name for step in steps]
        start = 0
        if from_step is not None:
            if from_step not in names:
                raise KeyError(f"Unknown step '{from_step}'")
            start = names.index(from_step)

        symbols = get_symbols(self.app_settings)
        self.state = RunState.RUNNING
        total = len(steps)

        for index in range(start, total):
            step = steps[index]
            position = index + 1
            self.current_index = position
            description = getattr(step, "description", "") or step.name
            self._log(
                f"{symbols.get('step', '➡️')} Step {position}/{total}: {step.name} ({description})"
            )

            if self._is_satisfied(step):
                self._record(step.name, StepStatus.SKIPPED, ALREADY_SATISFIED_MESSAGE)
                self._log(
                    f"{symbols.get('skip', '⏭️')} {step.name}: already satisfied. Skipping."
                )
                continue

            if self.dry_run:
                self._record(step.name, StepStatus.SKIPPED, DRY_RUN_MESSAGE)
                self._log(
                    f"{symbols.get('info', 'ℹ️')} {step.name}: would run (dry run)."
                )
                continue

            fatal = False
            try:
                outcome = step.action()
                if outcome is False:
                    raise ActionError(step.name, "action reported failure")
                if self.state_store is not None:
                    self.state_store.mark_completed(step.name)
            except ConfigWriteError as e:
                fatal = True
                failure = describe_failure(e)
            except ACTION_FAILURES as e:
                fatal = step.critical
                failure = describe_failure(e)
            else:
                self._record(step.name, StepStatus.SUCCEEDED)
                self._log(
                    f"{symbols.get('success', '✅')} {step.name} completed.",
                    "success",
                )
                continue

            self._record(step.name, StepStatus.FAILED, failure)
            self._log(
                f"{symbols.get('error', '❌')} Step '{step.name}' failed: {failure}",
                "error",
            )
            if fatal:
                self.state = RunState.FAILED
                self.failed_step = step.name
                self.failed_index = position
                self._log(
                    f"{symbols.get('critical', '🔥')} Stopping: '{step.name}' is required for the remaining steps.",
                    "critical",
                )
                return list(self.results)
            self._log(
                f"{symbols.get('warning', '!')} '{step.name}' is not critical. Continuing.",
                "warning",
            )

        self.current_index = None
        self.state = RunState.COMPLETED
        return list(self.results)

    def summary(self) -> RunSummary:
        return RunSummary(
            results=list(self.results),
            state=self.state,
            failed_step=self.failed_step,
            failed_index=self.failed_index,
        )
