# devsetup/steps/neovim.py
# -*- coding: utf-8 -*-
"""
Neovim step: installs a pinned release tarball below the configured parent
directory (``/opt`` by default).
"""

import tempfile
from pathlib import Path
from typing import Optional

from devsetup import config
from devsetup.common.network_utils import download_file
from devsetup.engine.base_step import BaseStep
from devsetup.engine.registry import StepRegistry


@StepRegistry.register(
    name="neovim",
    metadata={
        "order": 110,
        "dependencies": ["system_packages"],
        "description": "Pinned Neovim release",
    },
)
class NeovimStep(BaseStep):
    @property
    def wanted_version(self) -> str:
        return self.app_settings.versions.neovim.lstrip("v")

    def check(self) -> bool:
        nvim = self.app_settings.paths.neovim_bin / "nvim"
        if not self.context.probe.file_exists(nvim):
            return False
        installed = self.context.probe.version_of(str(nvim))
        if installed != self.wanted_version:
            self.logger.info(
                f"Neovim {installed or 'unknown'} found, {self.wanted_version} wanted."
            )
            return False
        return True

    def action(self) -> bool:
        paths = self.app_settings.paths
        urls = self.app_settings.urls
        url = urls.neovim_template.format(
            version=self.app_settings.versions.neovim,
            tarball=config.NEOVIM_TARBALL_NAME,
        )
        download_dir: Optional[Path] = paths.download_dir
        if download_dir is not None:
            download_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(
            dir=str(download_dir) if download_dir else None
        ) as tmp_dir:
            tarball = download_file(
                url,
                Path(tmp_dir) / config.NEOVIM_TARBALL_NAME,
                timeout=urls.request_timeout,
                current_logger=self.logger,
            )
            self.logger.info(f"Removing existing Neovim installation at {paths.neovim_dir}")
            self.run_elevated(["rm", "-rf", str(paths.neovim_dir)])
            self.logger.info(f"Extracting Neovim to {paths.neovim_install_parent}...")
            self.run_elevated(
                ["tar", "-C", str(paths.neovim_install_parent), "-xzf", str(tarball)]
            )
        return True

    def summary_line(self) -> Optional[str]:
        return (
            f"Neovim {self.app_settings.versions.neovim} installed to "
            f"{self.app_settings.paths.neovim_dir}"
        )
