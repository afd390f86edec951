# devsetup/steps/ruby_provider.py
# -*- coding: utf-8 -*-
from devsetup.engine.base_step import BaseStep
from devsetup.engine.registry import StepRegistry


@StepRegistry.register(
    name="ruby_provider",
    metadata={
        "order": 60,
        "dependencies": ["system_packages"],
        "description": "Ruby Neovim provider (gem install neovim)",
    },
)
class RubyProviderStep(BaseStep):
    def check(self) -> bool:
        return self.context.probe.command_succeeds(["gem", "list", "-i", "neovim"])

    def action(self) -> bool:
        self.run_elevated(["gem", "install", "neovim", "--no-document"])
        return True
