# devsetup/engine/context.py
# -*- coding: utf-8 -*-
"""
Shared, explicit state handed to every step of a provisioning run.
"""

import logging
from typing import Any, Dict, Optional

from devsetup.common.debian.apt_manager import AptManager
from devsetup.common.file_utils import ConfigWriter
from devsetup.config_models import AppSettings
from devsetup.engine.probe import EnvironmentProbe
from devsetup.engine.state_store import StateStore
from devsetup.engine.version_resolver import (
    PyenvVersionResolver,
    SettingsVersionResolver,
    VersionResolver,
)


class ProvisioningContext:
    """
    Collaborators and values shared by the steps of one run.

    ``env`` holds variables steps export for later commands (for example
    ``CXX``); it is merged into each command's environment explicitly rather
    than written to ``os.environ``. ``facts`` holds values discovered during
    the run, such as the resolved Python version.
    """

    def __init__(
        self,
        app_settings: AppSettings,
        logger: Optional[logging.Logger] = None,
        probe: Optional[EnvironmentProbe] = None,
        writer: Optional[ConfigWriter] = None,
        resolver: Optional[VersionResolver] = None,
        state_store: Optional[StateStore] = None,
        apt_manager: Optional[AptManager] = None,
    ):
        self.app_settings = app_settings
        self.logger = logger or logging.getLogger(__name__)
        self.probe = probe or EnvironmentProbe(app_settings, self.logger)
        self.writer = writer or ConfigWriter(app_settings, self.logger)
        self.resolver = resolver or SettingsVersionResolver(
            app_settings,
            fallback=PyenvVersionResolver(app_settings, logger=self.logger),
        )
        self.state_store = state_store or StateStore(
            app_settings, logger=self.logger
        )
        self._apt_manager = apt_manager
        self.env: Dict[str, str] = {}
        self.facts: Dict[str, Any] = {}

    @property
    def apt(self) -> AptManager:
        """
        The apt manager, created on first use.

        Raises:
            FileNotFoundError: If apt-get is not available.
        """
        if self._apt_manager is None:
            self._apt_manager = AptManager(logger=self.logger)
        return self._apt_manager

    def command_env(self, **extra: str) -> Dict[str, str]:
        """Variables exported so far, plus ``extra`` for a single command."""
        merged = dict(self.env)
        merged.update(extra)
        return merged
