# devsetup/steps/node_toolchain.py
# -*- coding: utf-8 -*-
"""
Node.js toolchain steps: nvm, a Node.js release installed through it, and
the Node.js Neovim provider.

nvm is a shell function, so every nvm command runs in ``bash -c`` after
sourcing ``nvm.sh``.
"""

import shlex
from typing import Dict, List, Optional

from devsetup.config_models import AppSettings
from devsetup.engine.base_step import BaseStep
from devsetup.engine.registry import StepRegistry


def nvm_env(app_settings: AppSettings) -> Dict[str, str]:
    return {"NVM_DIR": str(app_settings.paths.nvm_dir)}


def nvm_shell(app_settings: AppSettings, script: str) -> List[str]:
    nvm_sh = shlex.quote(str(app_settings.paths.nvm_dir / "nvm.sh"))
    return ["bash", "-c", f". {nvm_sh} && {script}"]


@StepRegistry.register(
    name="nvm",
    metadata={
        "order": 70,
        "dependencies": ["system_packages"],
        "description": "nvm Node.js version manager",
    },
)
class NvmStep(BaseStep):
    def check(self) -> bool:
        return self.context.probe.file_exists(
            self.app_settings.paths.nvm_dir / "nvm.sh"
        )

    def action(self) -> bool:
        nvm_dir = self.app_settings.paths.nvm_dir
        # The nvm installer rejects an NVM_DIR that does not exist yet.
        nvm_dir.mkdir(parents=True, exist_ok=True)
        url = self.app_settings.urls.nvm_template.format(
            version=self.app_settings.versions.nvm
        )
        self.run_remote_script(url, ["bash"], env=nvm_env(self.app_settings))
        return True


@StepRegistry.register(
    name="node",
    metadata={
        "order": 80,
        "dependencies": ["nvm"],
        "description": "Node.js via nvm",
    },
)
class NodeStep(BaseStep):
    def check(self) -> bool:
        version = shlex.quote(self.app_settings.versions.node)
        return self.context.probe.command_succeeds(
            nvm_shell(self.app_settings, f"nvm which {version} >/dev/null"),
            env=nvm_env(self.app_settings),
        )

    def action(self) -> bool:
        version = shlex.quote(self.app_settings.versions.node)
        self.run(
            nvm_shell(self.app_settings, f"nvm install {version}"),
            env=nvm_env(self.app_settings),
        )
        return True

    def summary_line(self) -> Optional[str]:
        return f"Node.js {self.app_settings.versions.node} installed via nvm"


@StepRegistry.register(
    name="node_provider",
    metadata={
        "order": 90,
        "dependencies": ["node"],
        "description": "Node.js Neovim provider (npm install -g neovim)",
    },
)
class NodeProviderStep(BaseStep):
    def _with_node(self, script: str) -> List[str]:
        version = shlex.quote(self.app_settings.versions.node)
        return nvm_shell(
            self.app_settings, f"nvm use --silent {version} && {script}"
        )

    def check(self) -> bool:
        return self.context.probe.command_succeeds(
            self._with_node("npm ls -g neovim >/dev/null"),
            env=nvm_env(self.app_settings),
        )

    def action(self) -> bool:
        self.run(
            self._with_node("npm install -g neovim"),
            env=nvm_env(self.app_settings),
        )
        return True
