# devsetup/engine/probe.py
# -*- coding: utf-8 -*-
"""
Read-only inspection of the machine being provisioned.

Every predicate here only looks: file and directory existence, dpkg status,
and ``--version`` style queries. A tool that is missing entirely reads as
"not installed". Only an inspection that cannot be carried out, such as a
permission error on a path, raises ProbeError.
"""

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Union

from devsetup.common.command_utils import (
    check_package_installed,
    log_message,
    run_command,
)
from devsetup.config_models import AppSettings
from devsetup.engine.errors import ProbeError

module_logger = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r"v?(\d+\.\d+(?:\.\d+)?)")

PathLike = Union[str, Path]


def parse_version(output: str) -> Optional[str]:
    """Return the first ``x.y[.z]`` token in command output, without a leading 'v'."""
    match = VERSION_PATTERN.search(output or "")
    return match.group(1) if match else None


class EnvironmentProbe:
    """Idempotency predicates used by step ``check()`` implementations."""

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        extra_bin_dirs: Optional[Iterable[PathLike]] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or module_logger
        if extra_bin_dirs is None:
            extra_bin_dirs = app_settings.paths.extra_bin_dirs()
        self.extra_bin_dirs: List[Path] = [Path(p) for p in extra_bin_dirs]

    def which(self, tool_name: str) -> Optional[Path]:
        """Locate a tool on PATH or in the directories installers drop binaries into."""
        found = shutil.which(tool_name)
        if found:
            return Path(found)
        for bin_dir in self.extra_bin_dirs:
            candidate = bin_dir / tool_name
            try:
                if candidate.is_file() and os.access(candidate, os.X_OK):
                    return candidate
            except OSError as e:
                raise ProbeError(f"Cannot inspect {candidate}: {e}") from e
        return None

    def is_installed(self, tool_name: str) -> bool:
        return self.which(tool_name) is not None

    def version_of(
        self, tool_name: str, args: Sequence[str] = ("--version",)
    ) -> Optional[str]:
        """
        Query a tool for its version.

        Returns:
            The parsed version string, or None when the tool is absent, exits
            non-zero, or prints nothing that looks like a version.
        """
        tool_path = self.which(tool_name)
        if tool_path is None:
            return None
        try:
            result = run_command(
                [str(tool_path), *args],
                self.app_settings,
                check=False,
                capture_output=True,
                current_logger=self.logger,
            )
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ProbeError(f"Cannot run '{tool_name}': {e}") from e
        if result.returncode != 0:
            return None
        return parse_version(f"{result.stdout or ''}\n{result.stderr or ''}")

    def directory_exists(self, path: PathLike) -> bool:
        try:
            return Path(path).is_dir()
        except OSError as e:
            raise ProbeError(f"Cannot inspect directory {path}: {e}") from e

    def file_exists(self, path: PathLike) -> bool:
        try:
            return Path(path).is_file()
        except OSError as e:
            raise ProbeError(f"Cannot inspect file {path}: {e}") from e

    def file_contains(self, path: PathLike, needle: str) -> bool:
        try:
            return needle in Path(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ProbeError(f"Cannot read {path}: {e}") from e

    def file_matches(self, path: PathLike, pattern: str) -> bool:
        """True if any line of the file matches the regular expression ``pattern``."""
        regex = re.compile(pattern)
        try:
            text = Path(path).read_text(encoding="utf-8")
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ProbeError(f"Cannot read {path}: {e}") from e
        return any(regex.search(line) for line in text.splitlines())

    def package_installed(self, package_name: str) -> bool:
        return check_package_installed(
            package_name, self.app_settings, current_logger=self.logger
        )

    def all_packages_installed(self, package_names: Iterable[str]) -> bool:
        missing = [
            name for name in package_names if not self.package_installed(name)
        ]
        if missing:
            log_message(
                f"Packages not yet installed: {', '.join(missing)}",
                "debug",
                self.logger,
                self.app_settings,
            )
        return not missing

    def command_succeeds(
        self,
        command: Union[List[str], str],
        env: Optional[Mapping[str, str]] = None,
        shell: bool = False,
    ) -> bool:
        """True if the command runs and exits 0. A missing executable is False."""
        try:
            result = run_command(
                command,
                self.app_settings,
                check=False,
                shell=shell,
                capture_output=True,
                current_logger=self.logger,
                env=env,
            )
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ProbeError(f"Cannot run {command!r}: {e}") from e
        return result.returncode == 0

    def command_output(
        self,
        command: List[str],
        env: Optional[Mapping[str, str]] = None,
    ) -> Optional[str]:
        """Stdout of a successful command, or None if it is missing or fails."""
        try:
            result = run_command(
                command,
                self.app_settings,
                check=False,
                capture_output=True,
                current_logger=self.logger,
                env=env,
            )
        except FileNotFoundError:
            return None
        except (OSError, subprocess.SubprocessError) as e:
            raise ProbeError(f"Cannot run {command!r}: {e}") from e
        if result.returncode != 0:
            return None
        return result.stdout or ""

    def font_installed(self, pattern: str) -> bool:
        """True if any font known to fontconfig matches ``pattern`` (case-insensitive)."""
        listing = self.command_output(["fc-list"])
        if listing is None:
            return False
        return pattern.lower() in listing.lower()
