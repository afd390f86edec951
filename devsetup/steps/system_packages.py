# devsetup/steps/system_packages.py
# -*- coding: utf-8 -*-
"""
System packages step: apt update, upgrade, and the build dependencies the
later toolchain steps compile against.
"""

from devsetup.common.command_utils import get_symbols, log_message
from devsetup.engine.base_step import BaseStep
from devsetup.engine.registry import StepRegistry


@StepRegistry.register(
    name="system_packages",
    metadata={
        "order": 10,
        "description": "System packages and build dependencies via apt",
    },
)
class SystemPackagesStep(BaseStep):
    """
    Installs the configured apt packages.

    Also exports ``CXX`` for the rest of the run, whether or not the
    packages had to be installed, since pyenv builds need it.
    """

    def check(self) -> bool:
        satisfied = self.context.probe.all_packages_installed(
            self.app_settings.apt.packages
        )
        if satisfied:
            self._export_compiler()
        return satisfied

    def action(self) -> bool:
        symbols = get_symbols(self.app_settings)
        apt = self.context.apt
        apt.update(self.app_settings, raise_error=True)
        if self.app_settings.apt.upgrade:
            apt.upgrade(self.app_settings, raise_error=True)
        log_message(
            f"{symbols.get('package', '📦')} Installing system dependencies...",
            "info",
            self.logger,
            self.app_settings,
        )
        apt.install(
            self.app_settings.apt.packages,
            self.app_settings,
            update_first=False,
            raise_error=True,
        )
        self._export_compiler()
        return True

    def _export_compiler(self) -> None:
        compiler = self.context.probe.which("g++")
        if compiler is None:
            self.logger.warning("g++ not found; CXX is not set.")
            return
        self.context.env["CXX"] = str(compiler)
        self.logger.info(f"CXX compiler set to: {compiler}")
