# devsetup/engine/orchestrator.py
# -*- coding: utf-8 -*-
"""
Orchestrator for provisioning runs.

This module provides the ProvisioningOrchestrator class, which imports the
step modules, builds the ordered step list from the registry and settings,
and executes it through the StepRunner.
"""

import importlib
import logging
import pkgutil
from typing import Dict, List, Optional

from devsetup.common.command_utils import get_symbols, log_message
from devsetup.config_models import AppSettings
from devsetup.engine.base_step import BaseStep
from devsetup.engine.context import ProvisioningContext
from devsetup.engine.errors import ProbeError
from devsetup.engine.models import RunSummary, StepStatus
from devsetup.engine.registry import StepRegistry
from devsetup.engine.runner import StepRunner

STEPS_PACKAGE = "devsetup.steps"


class ProvisioningOrchestrator:
    """
    Builds and runs the provisioning steps.

    Steps disabled through ``AppSettings.steps`` are left out of the run;
    a configured ``critical`` value replaces the registered one.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        context: Optional[ProvisioningContext] = None,
        registry: type = StepRegistry,
    ):
        """
        Initialize the orchestrator.

        Args:
            app_settings: The application settings.
            logger: Optional logger instance.
            context: Shared context for the steps. Built from the settings
                when omitted.
            registry: The registry to read steps from.
        """
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.context = context or ProvisioningContext(app_settings, self.logger)
        self.registry = registry

        self._import_step_modules()

    def _import_step_modules(self) -> None:
        """Import every module in the steps package so its steps register."""
        package = importlib.import_module(STEPS_PACKAGE)
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{STEPS_PACKAGE}.{module_name}")
            self.logger.debug(f"Imported step module: {module_name}")

    def build_steps(self) -> List[BaseStep]:
        """Instantiate the enabled steps in execution order."""
        steps: List[BaseStep] = []
        for name in self.registry.ordered_names():
            override = self.app_settings.step_override(name)
            if not override.enabled:
                self.logger.info(f"Step '{name}' is disabled by configuration.")
                continue
            step_class = self.registry.get_step(name)
            steps.append(
                step_class(self.context, critical=override.critical)
            )
        return steps

    def list_steps(self) -> List[BaseStep]:
        return self.build_steps()

    def run(
        self, dry_run: bool = False, from_step: Optional[str] = None
    ) -> RunSummary:
        """
        Run the enabled steps.

        Raises:
            KeyError: If ``from_step`` names no enabled step.
        """
        steps = self.build_steps()
        runner = StepRunner(
            self.app_settings,
            logger=self.logger,
            state_store=None if dry_run else self.context.state_store,
            dry_run=dry_run,
        )
        runner.run(steps, from_step=from_step)
        summary = runner.summary()
        if summary.exit_code == 0:
            self._log_final_summary(steps, summary, dry_run)
        return summary

    def check_status(self) -> Dict[str, bool]:
        """Map each enabled step name to whether its check is satisfied."""
        status: Dict[str, bool] = {}
        for step in self.build_steps():
            try:
                status[step.name] = bool(step.check())
            except ProbeError as e:
                self.logger.warning(f"Could not inspect '{step.name}': {e}")
                status[step.name] = False
        return status

    def _log_final_summary(
        self, steps: List[BaseStep], summary: RunSummary, dry_run: bool
    ) -> None:
        symbols = get_symbols(self.app_settings)

        def log(message: str, level: str = "info") -> None:
            log_message(message, level, self.logger, self.app_settings)

        log(
            f"{symbols.get('sparkles', '✨')} Provisioning run finished: "
            f"{summary.count(StepStatus.SUCCEEDED)} succeeded, "
            f"{summary.count(StepStatus.SKIPPED)} skipped, "
            f"{summary.count(StepStatus.FAILED)} failed.",
            "success",
        )
        for result in summary.results:
            if result.status == StepStatus.FAILED:
                log(f"- {result.step_name} failed (not critical): {result.message}", "warning")
        if dry_run:
            return

        evaluated = {
            result.step_name
            for result in summary.results
            if result.status != StepStatus.FAILED
        }
        lines = [
            line
            for line in (
                step.summary_line() for step in steps if step.name in evaluated
            )
            if line
        ]
        if lines:
            log("Installation Summary:")
            for line in lines:
                log(f"- {line}")
        log("Next steps:")
        log(f"1. Restart your terminal or run: source {self.app_settings.paths.shell_init_file}")
        log("2. Start LunarVim with: lvim")
        log("3. Check providers with: :checkhealth provider")
        log(f"{symbols.get('rocket', '🚀')} Happy coding with LunarVim!", "success")
