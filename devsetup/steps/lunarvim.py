# devsetup/steps/lunarvim.py
# -*- coding: utf-8 -*-
"""
LunarVim steps: the installer for the pinned branch, the provider block in
``config.lua``, and the headless update and core-plugin sync.
"""

import os
from pathlib import Path
from typing import Dict, Optional

from devsetup import config
from devsetup.config_models import AppSettings
from devsetup.engine.base_step import BaseStep
from devsetup.engine.registry import StepRegistry
from devsetup.steps.python_toolchain import python_executable, python_version


def editor_path_env(app_settings: AppSettings) -> Dict[str, str]:
    """PATH with the Neovim and user bin directories in front, for lvim and its installer."""
    paths = app_settings.paths
    return {
        "PATH": os.pathsep.join(
            [str(paths.neovim_bin), str(paths.local_bin), os.environ.get("PATH", "")]
        )
    }


def lvim_executable(app_settings: AppSettings) -> Path:
    return app_settings.paths.local_bin / "lvim"


@StepRegistry.register(
    name="lunarvim",
    metadata={
        "order": 120,
        "dependencies": ["neovim", "python_provider", "node_provider", "rust"],
        "description": "LunarVim from the branch matching the Neovim release",
    },
)
class LunarVimStep(BaseStep):
    def check(self) -> bool:
        return self.context.probe.file_exists(lvim_executable(self.app_settings))

    def action(self) -> bool:
        branch = self.app_settings.versions.lunarvim_branch
        url = self.app_settings.urls.lunarvim_template.format(branch=branch)
        self.run_remote_script(
            url,
            ["bash", "-s", "--", "-y"],
            env={**editor_path_env(self.app_settings), "LV_BRANCH": branch},
        )
        return True


@StepRegistry.register(
    name="lunarvim_config",
    metadata={
        "order": 130,
        "dependencies": ["lunarvim", "python"],
        "description": "Provider and debugger block in the LunarVim config",
    },
)
class LunarVimConfigStep(BaseStep):
    def check(self) -> bool:
        return self.context.writer.has_block(
            self.app_settings.paths.lvim_config_file,
            config.LVIM_CONFIG_MARKER,
            comment_prefix="--",
        )

    def action(self) -> bool:
        python_host_prog = python_executable(
            self.app_settings, python_version(self.context)
        )
        content = self.app_settings.lvim_config_template.format(
            python_host_prog=python_host_prog
        )
        self.context.writer.upsert_block(
            self.app_settings.paths.lvim_config_file,
            config.LVIM_CONFIG_MARKER,
            content,
            comment_prefix="--",
        )
        return True


@StepRegistry.register(
    name="lunarvim_sync",
    metadata={
        "order": 150,
        "dependencies": ["lunarvim_config"],
        "description": "Headless LunarVim update and core plugin sync",
    },
)
class LunarVimSyncStep(BaseStep):
    """
    Runs ``lvim --headless +LvimUpdate +LvimSyncCorePlugins +q``.

    The sync leaves nothing reliable to inspect, so this step relies on the
    completion record in the state file.
    """

    def check(self) -> bool:
        return self.context.state_store.is_completed(self.name)

    def action(self) -> bool:
        self.run(
            [
                str(lvim_executable(self.app_settings)),
                "--headless",
                "+LvimUpdate",
                "+LvimSyncCorePlugins",
                "+q",
            ],
            env=editor_path_env(self.app_settings),
        )
        return True

    def summary_line(self) -> Optional[str]:
        return "LunarVim installed and configured"
