# devsetup/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for application configuration.

This module defines the structured settings for the toolchain setup,
including defaults, type annotations, and descriptions.
It utilizes Pydantic for data validation and settings management.
"""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from devsetup import config


class PathSettings(BaseModel):
    """Filesystem locations the setup reads from and writes to."""

    home: Path = Field(
        default_factory=Path.home,
        description="Home directory of the user being provisioned.",
    )
    bashrc: Optional[Path] = Field(
        default=None,
        description="Shell init file receiving the pyenv block. Defaults to ~/.bashrc.",
    )
    lvim_config: Optional[Path] = Field(
        default=None,
        description="LunarVim config file. Defaults to ~/.config/lvim/config.lua.",
    )
    neovim_install_parent: Path = Field(
        default=Path(config.NEOVIM_INSTALL_PARENT_DEFAULT),
        description="Directory the Neovim release tarball is extracted into.",
    )
    state_file: Optional[Path] = Field(
        default=None,
        description="File recording completed steps. Defaults to ~/.local/state/devsetup/completed_steps.txt.",
    )
    download_dir: Optional[Path] = Field(
        default=None,
        description="Scratch directory for downloads. Defaults to a temporary directory.",
    )

    @field_validator("home", "neovim_install_parent")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return Path(value).expanduser()

    # Home-relative defaults resolve lazily so a YAML 'home' override
    # moves every derived path with it.
    @property
    def shell_init_file(self) -> Path:
        return self.bashrc or self.home / ".bashrc"

    @property
    def lvim_config_file(self) -> Path:
        return self.lvim_config or (
            self.home / ".config" / "lvim" / "config.lua"
        )

    @property
    def state_path(self) -> Path:
        return self.state_file or self.home / config.STATE_FILE_RELATIVE_PATH

    @property
    def pyenv_root(self) -> Path:
        return self.home / ".pyenv"

    @property
    def nvm_dir(self) -> Path:
        return self.home / ".nvm"

    @property
    def cargo_bin(self) -> Path:
        return self.home / ".cargo" / "bin"

    @property
    def local_bin(self) -> Path:
        return self.home / ".local" / "bin"

    @property
    def neovim_dir(self) -> Path:
        return self.neovim_install_parent / config.NEOVIM_TARBALL_NAME.replace(
            ".tar.gz", ""
        )

    @property
    def neovim_bin(self) -> Path:
        return self.neovim_dir / "bin"

    def extra_bin_dirs(self) -> List[Path]:
        """Directories searched for tools that installers drop outside PATH."""
        return [
            self.pyenv_root / "bin",
            self.pyenv_root / "shims",
            self.cargo_bin,
            self.local_bin,
            self.neovim_bin,
        ]


class ToolVersions(BaseModel):
    """Versions requested for each toolchain component."""

    python: str = Field(
        default=config.PYTHON_VERSION_DEFAULT,
        description="CPython version for pyenv, or 'latest' to pick the newest stable release.",
    )
    node: str = Field(
        default=config.NODE_VERSION_DEFAULT,
        description="Node.js version passed to 'nvm install'.",
    )
    neovim: str = Field(
        default=config.NEOVIM_VERSION_DEFAULT,
        description="Neovim release tag.",
    )
    nvm: str = Field(
        default=config.NVM_VERSION_DEFAULT, description="nvm release tag."
    )
    lunarvim_branch: str = Field(
        default=config.LUNARVIM_BRANCH_DEFAULT,
        description="LunarVim branch compatible with the pinned Neovim release.",
    )


class InstallerUrls(BaseModel):
    """Locations of the third-party installer scripts and archives."""

    pyenv: str = Field(default=config.PYENV_INSTALLER_URL)
    nvm_template: str = Field(default=config.NVM_INSTALLER_URL_TEMPLATE)
    rustup: str = Field(default=config.RUSTUP_INSTALLER_URL)
    neovim_template: str = Field(default=config.NEOVIM_RELEASE_URL_TEMPLATE)
    lunarvim_template: str = Field(
        default=config.LUNARVIM_INSTALLER_URL_TEMPLATE
    )
    getnf: str = Field(default=config.GETNF_INSTALLER_URL)
    request_timeout: int = Field(
        default=120, description="Timeout in seconds for each download."
    )


class AptSettings(BaseModel):
    """apt behaviour for the system packages step."""

    packages: List[str] = Field(
        default_factory=lambda: list(config.SYSTEM_PACKAGES),
        description="Packages installed by the system packages step.",
    )
    upgrade: bool = Field(
        default=True,
        description="Run 'apt-get upgrade' before installing packages.",
    )


class LoggingSettings(BaseModel):
    """Console and file logging options."""

    level: str = Field(default="INFO", description="Root log level.")
    file: Optional[Path] = Field(
        default=None, description="Optional JSON log file."
    )
    color: bool = Field(
        default=True, description="Color level tags on the console."
    )


class StepOverride(BaseModel):
    """Per-step overrides keyed by step name in AppSettings.steps."""

    enabled: bool = Field(default=True, description="Include the step in runs.")
    critical: Optional[bool] = Field(
        default=None,
        description="Override the registered criticality of the step.",
    )


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="DEVSETUP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_prefix: str = Field(
        default=config.LOG_PREFIX_DEFAULT,
        description="Prefix for log messages from the setup run.",
    )
    shell_init_template: str = Field(
        default=config.SHELL_INIT_TEMPLATE_DEFAULT,
        description=(
            "Block appended to the shell init file. Supports {pyenv_root},"
            " {neovim_bin_dir}, {local_bin} and {cargo_bin}."
        ),
    )
    lvim_config_template: str = Field(
        default=config.LVIM_CONFIG_TEMPLATE_DEFAULT,
        description="Block appended to the LunarVim config. Supports {python_host_prog}.",
    )
    strip_interactive_guard: bool = Field(
        default=True,
        description="Remove the '-z \"$PS1\"' guard line from the shell init file.",
    )
    nerd_font_pattern: str = Field(
        default=config.NERD_FONT_PATTERN_DEFAULT,
        description="Substring of fc-list output that marks Nerd Fonts as installed.",
    )
    nerd_fonts: List[str] = Field(
        default_factory=lambda: list(config.NERD_FONTS_DEFAULT),
        description="Fonts passed to 'getnf -i'.",
    )

    paths: PathSettings = Field(default_factory=PathSettings)
    versions: ToolVersions = Field(default_factory=ToolVersions)
    urls: InstallerUrls = Field(default_factory=InstallerUrls)
    apt: AptSettings = Field(default_factory=AptSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    steps: Dict[str, StepOverride] = Field(
        default_factory=dict,
        description="Per-step overrides keyed by step name.",
    )

    symbols: Dict[str, str] = Field(
        default_factory=lambda: dict(config.SYMBOLS_DEFAULT)
    )

    def step_override(self, step_name: str) -> StepOverride:
        return self.steps.get(step_name, StepOverride())
