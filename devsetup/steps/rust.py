# devsetup/steps/rust.py
# -*- coding: utf-8 -*-
from typing import Optional

from devsetup.engine.base_step import BaseStep
from devsetup.engine.registry import StepRegistry


@StepRegistry.register(
    name="rust",
    metadata={
        "order": 100,
        "dependencies": ["system_packages"],
        "description": "Rust toolchain via rustup",
    },
)
class RustStep(BaseStep):
    def check(self) -> bool:
        return self.context.probe.is_installed("rustup")

    def action(self) -> bool:
        self.run_remote_script(
            self.app_settings.urls.rustup, ["sh", "-s", "--", "-y"]
        )
        return True

    def summary_line(self) -> Optional[str]:
        return "Rust installed via rustup"
