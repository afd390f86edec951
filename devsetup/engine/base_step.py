# devsetup/engine/base_step.py
"""
Base class for all provisioning steps.

A step is one idempotent unit of work: ``check()`` answers "is this already
done?" without changing anything, and ``action()`` performs the work. The
StepRunner calls ``action()`` only when ``check()`` returns False.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Union,
)

from devsetup.common.command_utils import run_command, run_elevated_command
from devsetup.common.network_utils import fetch_text

if TYPE_CHECKING:
    from devsetup.engine.context import ProvisioningContext


class BaseStep(ABC):
    """
    Base class for the concrete provisioning steps.

    Subclasses are registered with ``StepRegistry.register``, which sets
    ``name`` and ``metadata``. An action signals failure by raising or by
    returning False; any other return value counts as success.
    """

    name: str = ""

    # Class-level metadata, set by the registry decorator
    metadata: Dict[str, Any] = {
        "dependencies": [],  # Names of steps that must run first
        "critical": True,  # Whether a failure stops the whole run
        "description": "",
    }

    def __init__(
        self,
        context: "ProvisioningContext",
        critical: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the step.

        Args:
            context: The shared provisioning context.
            critical: Overrides the registered criticality when not None.
            logger: Optional logger instance. Defaults to the context logger.
        """
        self.context = context
        self.app_settings = context.app_settings
        self.logger = logger or context.logger
        self._critical = (
            bool(self.metadata.get("critical", True))
            if critical is None
            else critical
        )

    @property
    def critical(self) -> bool:
        return self._critical

    @property
    def description(self) -> str:
        return str(self.metadata.get("description", "")) or self.name

    @abstractmethod
    def check(self) -> bool:
        """
        Report whether the step is already satisfied.

        Must not change machine state. An absent tool means False, not an
        error.
        """

    @abstractmethod
    def action(self) -> Optional[bool]:
        """
        Perform the step.

        Returns:
            False to signal failure; anything else signals success.
        """

    def run(
        self,
        command: Union[List[str], str],
        env: Optional[Mapping[str, str]] = None,
        capture_output: bool = False,
        cmd_input: Optional[str] = None,
        shell: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a command with the variables exported by earlier steps."""
        return run_command(
            command,
            self.app_settings,
            check=check,
            shell=shell,
            capture_output=capture_output,
            cmd_input=cmd_input,
            current_logger=self.logger,
            env=self.context.command_env(**(env or {})),
        )

    def run_elevated(
        self,
        command: List[str],
        env: Optional[Mapping[str, str]] = None,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        return run_elevated_command(
            command,
            self.app_settings,
            capture_output=capture_output,
            current_logger=self.logger,
            env=dict(env) if env else None,
        )

    def run_remote_script(
        self,
        url: str,
        interpreter: List[str],
        env: Optional[Mapping[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        """
        Download an installer script and feed it to ``interpreter`` on stdin,
        e.g. ``["sh", "-s", "--", "-y"]``.
        """
        script = fetch_text(
            url,
            timeout=self.app_settings.urls.request_timeout,
            current_logger=self.logger,
        )
        return self.run(interpreter, env=env, cmd_input=script)

    def summary_line(self) -> Optional[str]:
        """Line for the final summary of a successful run, if any."""
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} critical={self.critical}>"


class FunctionStep:
    """
    A step assembled from plain callables.

    Used for ad-hoc steps and in tests, where a predicate and a procedure
    are all that is needed.
    """

    def __init__(
        self,
        name: str,
        action: Callable[[], Optional[bool]],
        check: Optional[Callable[[], bool]] = None,
        critical: bool = True,
        description: str = "",
    ):
        self.name = name
        self._action = action
        self._check = check
        self.critical = critical
        self.description = description or name

    def check(self) -> bool:
        if self._check is None:
            return False
        return bool(self._check())

    def action(self) -> Optional[bool]:
        return self._action()

    def __repr__(self) -> str:
        return f"<FunctionStep name={self.name!r} critical={self.critical}>"
