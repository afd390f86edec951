# devsetup/engine/state_store.py
# -*- coding: utf-8 -*-
"""
Manages the state file for tracking completed provisioning steps.

The file holds a version header followed by one completed step name per
line. It is only a record: step ``check()`` methods inspect the machine
itself and never depend on this file, except for steps whose effects are
not otherwise observable.
"""

import logging
from pathlib import Path
from typing import List, Optional

from devsetup import config as static_config
from devsetup.common.command_utils import get_symbols, log_message
from devsetup.common.file_utils import atomic_write_text
from devsetup.config_models import AppSettings

module_logger = logging.getLogger(__name__)


class StateStore:
    """Reads and writes the list of completed step names."""

    def __init__(
        self,
        app_settings: AppSettings,
        state_file: Optional[Path] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.app_settings = app_settings
        self.state_file = Path(state_file or app_settings.paths.state_path)
        self.logger = logger or module_logger

    def _header(self) -> str:
        return f"# devsetup completed steps\n# Script Version: {static_config.SCRIPT_VERSION}\n"

    def completed_steps(self) -> List[str]:
        """Return completed step names in the order they were recorded."""
        try:
            text = self.state_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            log_message(
                f"{get_symbols(self.app_settings).get('warning', '!')} Could not read state file {self.state_file}: {e}",
                "warning",
                self.logger,
                self.app_settings,
            )
            return []
        return [
            line.strip()
            for line in text.splitlines()
            if line.strip() and not line.startswith("#")
        ]

    def is_completed(self, step_name: str) -> bool:
        return step_name in self.completed_steps()

    def mark_completed(self, step_name: str) -> None:
        """
        Record ``step_name`` as completed.

        Raises:
            ConfigWriteError: If the state file cannot be written.
        """
        completed = self.completed_steps()
        if step_name in completed:
            return
        completed.append(step_name)
        atomic_write_text(
            self.state_file, self._header() + "".join(f"{n}\n" for n in completed)
        )
        log_message(
            f"Marked step '{step_name}' as completed in {self.state_file}",
            "debug",
            self.logger,
            self.app_settings,
        )
