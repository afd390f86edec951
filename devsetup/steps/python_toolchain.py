# devsetup/steps/python_toolchain.py
# -*- coding: utf-8 -*-
"""
Python toolchain steps: pyenv, its shell-init block, the latest stable
CPython built by pyenv, and the Python Neovim provider.
"""

import shutil
from pathlib import Path
from typing import Dict, Optional

from devsetup import config
from devsetup.config_models import AppSettings
from devsetup.engine.base_step import BaseStep
from devsetup.engine.context import ProvisioningContext
from devsetup.engine.errors import ActionError, ProbeError
from devsetup.engine.registry import StepRegistry

PYTHON_VERSION_FACT = "python_version"


def pyenv_executable(app_settings: AppSettings) -> Path:
    return app_settings.paths.pyenv_root / "bin" / "pyenv"


def pyenv_env(app_settings: AppSettings) -> Dict[str, str]:
    return {"PYENV_ROOT": str(app_settings.paths.pyenv_root)}


def python_version(context: ProvisioningContext) -> str:
    """The CPython version for this run, resolved once and kept in the context facts."""
    if PYTHON_VERSION_FACT not in context.facts:
        context.facts[PYTHON_VERSION_FACT] = context.resolver.resolve_latest(
            "python"
        )
    return context.facts[PYTHON_VERSION_FACT]


def python_executable(app_settings: AppSettings, version: str) -> Path:
    return app_settings.paths.pyenv_root / "versions" / version / "bin" / "python3"


@StepRegistry.register(
    name="pyenv",
    metadata={
        "order": 20,
        "dependencies": ["system_packages"],
        "description": "pyenv Python version manager",
    },
)
class PyenvStep(BaseStep):
    def check(self) -> bool:
        return self.context.probe.file_exists(pyenv_executable(self.app_settings))

    def action(self) -> bool:
        pyenv_root = self.app_settings.paths.pyenv_root
        # The pyenv installer refuses to run over an existing PYENV_ROOT.
        if pyenv_root.exists():
            self.logger.warning(
                f"Removing incomplete pyenv installation at {pyenv_root}"
            )
            shutil.rmtree(pyenv_root)
        self.run_remote_script(
            self.app_settings.urls.pyenv,
            ["bash"],
            env=pyenv_env(self.app_settings),
        )
        return True


@StepRegistry.register(
    name="shell_init",
    metadata={
        "order": 30,
        "dependencies": ["pyenv"],
        "description": "pyenv and PATH block in the shell init file",
    },
)
class ShellInitStep(BaseStep):
    """
    Adds the pyenv init snippet and PATH additions to the shell init file.

    When enabled, also drops the ``-z "$PS1"`` guard line so the block is
    loaded by non-interactive shells too.
    """

    def check(self) -> bool:
        shell_init = self.app_settings.paths.shell_init_file
        if not self.context.writer.has_block(shell_init, config.SHELL_INIT_MARKER):
            return False
        if self.app_settings.strip_interactive_guard:
            return not self.context.probe.file_matches(
                shell_init, config.BASHRC_INTERACTIVE_GUARD_PATTERN
            )
        return True

    def action(self) -> bool:
        paths = self.app_settings.paths
        content = self.app_settings.shell_init_template.format(
            pyenv_root=paths.pyenv_root,
            neovim_bin_dir=paths.neovim_bin,
            local_bin=paths.local_bin,
            cargo_bin=paths.cargo_bin,
        )
        self.context.writer.upsert_block(
            paths.shell_init_file, config.SHELL_INIT_MARKER, content
        )
        if self.app_settings.strip_interactive_guard:
            self.context.writer.remove_matching_lines(
                paths.shell_init_file, config.BASHRC_INTERACTIVE_GUARD_PATTERN
            )
        return True


@StepRegistry.register(
    name="python",
    metadata={
        "order": 40,
        "dependencies": ["pyenv"],
        "description": "Latest stable CPython via pyenv, set as global",
    },
)
class PythonStep(BaseStep):
    def _version_for_check(self) -> str:
        try:
            return python_version(self.context)
        except ActionError as e:
            raise ProbeError(f"Cannot resolve the Python version: {e}") from e

    def check(self) -> bool:
        probe = self.context.probe
        if not probe.file_exists(pyenv_executable(self.app_settings)):
            return False
        version = self._version_for_check()
        if not probe.directory_exists(
            self.app_settings.paths.pyenv_root / "versions" / version
        ):
            return False
        current = probe.command_output(
            [str(pyenv_executable(self.app_settings)), "global"],
            env=pyenv_env(self.app_settings),
        )
        return bool(current) and current.split()[:1] == [version]

    def action(self) -> bool:
        version = python_version(self.context)
        pyenv = str(pyenv_executable(self.app_settings))
        env = pyenv_env(self.app_settings)
        self.logger.info(
            f"Installing Python {version} (this may take several minutes)..."
        )
        self.run(
            [pyenv, "install", version, "--skip-existing"],
            env={**env, "PYTHON_CONFIGURE_OPTS": "--enable-optimizations"},
        )
        self.run([pyenv, "global", version], env=env)
        return True

    def summary_line(self) -> Optional[str]:
        version = self.context.facts.get(PYTHON_VERSION_FACT)
        return f"Python {version} installed via pyenv" if version else None


@StepRegistry.register(
    name="python_provider",
    metadata={
        "order": 50,
        "dependencies": ["python"],
        "description": "Python Neovim provider (pip install neovim)",
    },
)
class PythonProviderStep(BaseStep):
    def check(self) -> bool:
        try:
            version = python_version(self.context)
        except ActionError as e:
            raise ProbeError(f"Cannot resolve the Python version: {e}") from e
        python = python_executable(self.app_settings, version)
        if not self.context.probe.file_exists(python):
            return False
        return self.context.probe.command_succeeds(
            [str(python), "-m", "pip", "show", "neovim"]
        )

    def action(self) -> bool:
        python = str(
            python_executable(self.app_settings, python_version(self.context))
        )
        self.run([python, "-m", "pip", "install", "--upgrade", "pip"])
        self.run([python, "-m", "pip", "install", "neovim"])
        return True
