# devsetup/engine/errors.py
# -*- coding: utf-8 -*-
"""Exception hierarchy for provisioning runs."""

from pathlib import Path
from typing import Optional, Union


class ProvisioningError(Exception):
    """Base class for every error raised by the provisioning engine."""


class ProbeError(ProvisioningError):
    """Inspecting the machine failed; the step is treated as not satisfied."""


class ActionError(ProvisioningError):
    """An external command or a step action reported failure."""

    def __init__(
        self,
        step_name: str,
        message: str,
        returncode: Optional[int] = None,
        output: Optional[str] = None,
    ):
        super().__init__(message)
        self.step_name = step_name
        self.message = message
        self.returncode = returncode
        self.output = output

    def __str__(self) -> str:
        details = self.message
        if self.returncode is not None:
            details = f"{details} (rc {self.returncode})"
        return details


class ConfigWriteError(ProvisioningError):
    """Writing a user configuration file failed. Always fatal to the run."""

    def __init__(self, path: Union[str, Path], message: str):
        super().__init__(f"{path}: {message}")
        self.path = Path(path)
        self.message = message
