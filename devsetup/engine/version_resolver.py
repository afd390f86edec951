# devsetup/engine/version_resolver.py
# -*- coding: utf-8 -*-
"""
Resolution of "latest version" values for tools.

Production runs ask the version manager (``pyenv install --list``); tests
and pinned configurations substitute a fixed mapping.
"""

import logging
import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Optional

from devsetup.common.command_utils import run_command
from devsetup.config_models import AppSettings
from devsetup.engine.errors import ActionError

module_logger = logging.getLogger(__name__)

LATEST = "latest"

_STABLE_RELEASE_LINE = re.compile(r"^\s*[0-9]")
_LETTER = re.compile(r"[a-z]", re.IGNORECASE)


def latest_stable_from_listing(listing: str) -> Optional[str]:
    """
    Pick the newest stable CPython release from ``pyenv install --list``.

    Keeps lines starting with a digit and without letters (which drops
    dev, rc, and 't' free-threaded builds), and returns the last one, as
    pyenv lists versions in ascending order.
    """
    candidates = [
        line.strip()
        for line in listing.splitlines()
        if _STABLE_RELEASE_LINE.match(line) and not _LETTER.search(line)
    ]
    return candidates[-1] if candidates else None


class VersionResolver(ABC):
    """Capability: map a tool name to the version that should be installed."""

    @abstractmethod
    def resolve_latest(self, tool_name: str) -> str:
        """Return the version of ``tool_name`` to install."""


class FixedVersionResolver(VersionResolver):
    """Resolver backed by a fixed mapping."""

    def __init__(self, versions: Mapping[str, str]):
        self.versions: Dict[str, str] = dict(versions)

    def resolve_latest(self, tool_name: str) -> str:
        if tool_name not in self.versions:
            raise KeyError(f"No fixed version configured for '{tool_name}'")
        return self.versions[tool_name]


class PyenvVersionResolver(VersionResolver):
    """Asks pyenv for the newest stable CPython release."""

    def __init__(
        self,
        app_settings: AppSettings,
        pyenv_executable: Optional[Path] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.pyenv_executable = pyenv_executable or (
            app_settings.paths.pyenv_root / "bin" / "pyenv"
        )
        self.logger = logger or module_logger

    def resolve_latest(self, tool_name: str) -> str:
        if tool_name != "python":
            raise KeyError(f"pyenv cannot resolve versions for '{tool_name}'")
        try:
            result = run_command(
                [str(self.pyenv_executable), "install", "--list"],
                self.app_settings,
                capture_output=True,
                check=True,
                current_logger=self.logger,
            )
        except subprocess.CalledProcessError as e:
            raise ActionError(
                "python",
                "'pyenv install --list' failed",
                returncode=e.returncode,
                output=e.stderr,
            ) from e
        except FileNotFoundError as e:
            raise ActionError(
                "python", f"pyenv not found at {self.pyenv_executable}"
            ) from e

        version = latest_stable_from_listing(result.stdout or "")
        if not version:
            raise ActionError("python", "Cannot find latest Python version")
        self.logger.info(f"Latest Python version found: {version}")
        return version


class SettingsVersionResolver(VersionResolver):
    """
    Uses the version pinned in settings, delegating to ``fallback`` when the
    setting is 'latest'. The answer is cached for the rest of the run.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        fallback: Optional[VersionResolver] = None,
    ):
        self.app_settings = app_settings
        self.fallback = fallback
        self._cache: Dict[str, str] = {}

    def resolve_latest(self, tool_name: str) -> str:
        if tool_name in self._cache:
            return self._cache[tool_name]
        pinned = getattr(self.app_settings.versions, tool_name, None)
        if pinned is None:
            raise KeyError(f"No version setting for '{tool_name}'")
        if pinned != LATEST:
            version = pinned
        elif self.fallback is None:
            raise KeyError(
                f"'{tool_name}' is set to '{LATEST}' but no resolver can look it up"
            )
        else:
            version = self.fallback.resolve_latest(tool_name)
        self._cache[tool_name] = version
        return version
