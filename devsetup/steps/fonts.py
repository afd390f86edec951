# devsetup/steps/fonts.py
# -*- coding: utf-8 -*-
from typing import Optional

from devsetup.engine.base_step import BaseStep
from devsetup.engine.registry import StepRegistry


@StepRegistry.register(
    name="fonts",
    metadata={
        "order": 140,
        "dependencies": ["system_packages"],
        "description": "Nerd Fonts via getnf, then a font cache refresh",
    },
)
class FontsStep(BaseStep):
    """Installs getnf if needed, the configured Nerd Fonts, and refreshes fontconfig."""

    def check(self) -> bool:
        return self.context.probe.font_installed(self.app_settings.nerd_font_pattern)

    def action(self) -> bool:
        getnf = self.context.probe.which("getnf")
        if getnf is None:
            self.run_remote_script(self.app_settings.urls.getnf, ["bash", "-s", "--"])
            getnf = self.app_settings.paths.local_bin / "getnf"
        self.run([str(getnf), "-i", ",".join(self.app_settings.nerd_fonts)])
        self.logger.info("Refreshing font cache...")
        self.run(["fc-cache"])
        return True

    def summary_line(self) -> Optional[str]:
        return "Nerd Fonts installed"
