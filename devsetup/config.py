# devsetup/config.py
# -*- coding: utf-8 -*-
"""
Static constants and default values for the development toolchain setup.

This module holds the defaults that the Pydantic settings models build on:
package lists for apt, installer URLs, pinned tool versions, the marked
configuration templates written into user files, and the logging symbols.
"""

from pathlib import Path
from typing import Dict, List

SCRIPT_VERSION: str = "1.0.0"
LOG_PREFIX_DEFAULT: str = "[DEVSETUP]"

# --- State File Configuration ---
STATE_FILE_RELATIVE_PATH: Path = Path(".local/state/devsetup/completed_steps.txt")

# --- Package Lists (for apt installation) ---
SYSTEM_PACKAGES: List[str] = [
    "tmux",
    "git",
    "curl",
    "g++",
    "cmake",
    "automake",
    "vim",
    "zlib1g-dev",
    "libssl-dev",
    "openssl",
    "bzip2",
    "libbz2-dev",
    "libncurses5-dev",
    "libncursesw5-dev",
    "libffi-dev",
    "libreadline-dev",
    "sqlite3",
    "libsqlite3-dev",
    "liblzma-dev",
    "ruby-full",
    "fontconfig",
    "sudo",
]

# Exported for every apt invocation so no package prompts for input.
APT_ENVIRONMENT: Dict[str, str] = {
    "DEBIAN_FRONTEND": "noninteractive",
    "APT_LISTCHANGES_FRONTEND": "none",
}

# --- Pinned Versions ---
PYTHON_VERSION_DEFAULT: str = "latest"
NODE_VERSION_DEFAULT: str = "22"
NEOVIM_VERSION_DEFAULT: str = "v0.9.5"
NVM_VERSION_DEFAULT: str = "v0.40.3"
LUNARVIM_BRANCH_DEFAULT: str = "release-1.4/neovim-0.9"

# --- Installer URLs ---
PYENV_INSTALLER_URL: str = "https://pyenv.run"
NVM_INSTALLER_URL_TEMPLATE: str = (
    "https://raw.githubusercontent.com/nvm-sh/nvm/{version}/install.sh"
)
RUSTUP_INSTALLER_URL: str = "https://sh.rustup.rs"
NEOVIM_TARBALL_NAME: str = "nvim-linux64.tar.gz"
NEOVIM_RELEASE_URL_TEMPLATE: str = (
    "https://github.com/neovim/neovim/releases/download/{version}/{tarball}"
)
LUNARVIM_INSTALLER_URL_TEMPLATE: str = (
    "https://raw.githubusercontent.com/LunarVim/LunarVim/{branch}/utils/installer/install.sh"
)
GETNF_INSTALLER_URL: str = (
    "https://raw.githubusercontent.com/getnf/getnf/main/install.sh"
)

NEOVIM_INSTALL_PARENT_DEFAULT: str = "/opt"
NERD_FONT_PATTERN_DEFAULT: str = "Nerd Font"
NERD_FONTS_DEFAULT: List[str] = ["JetBrainsMono"]

# --- Marked Blocks ---
SHELL_INIT_MARKER: str = "devsetup:pyenv"
LVIM_CONFIG_MARKER: str = "devsetup:lvim-providers"

# Drops the interactive-shell guard so the init block also loads for
# non-interactive shells.
BASHRC_INTERACTIVE_GUARD_PATTERN: str = r'-z "\$PS1"'

SHELL_INIT_TEMPLATE_DEFAULT: str = """\
export PYENV_ROOT="{pyenv_root}"
[[ -d $PYENV_ROOT/bin ]] && export PATH="$PYENV_ROOT/bin:$PATH"
eval "$(pyenv init - bash)"
export PATH="$PATH:{neovim_bin_dir}:{local_bin}:{cargo_bin}"
"""

LVIM_CONFIG_TEMPLATE_DEFAULT: str = """\
-- Python provider configuration
vim.g.python3_host_prog = '{python_host_prog}'
-- Disable Perl provider (not needed)
vim.g.loaded_perl_provider = 0

lvim.builtin.dap.active = true

-- Function key mappings for DAP
lvim.keys.normal_mode["<F5>"] = "<cmd>lua require'dap'.continue()<CR>"
lvim.keys.normal_mode["<F6>"] = "<cmd>lua require'dap'.step_over()<CR>"
lvim.keys.normal_mode["<F7>"] = "<cmd>lua require'dap'.step_into()<CR>"
lvim.keys.normal_mode["<F8>"] = "<cmd>lua require'dap'.step_out()<CR>"
lvim.keys.normal_mode["<F9>"] = "<cmd>lua require'dap'.toggle_breakpoint()<CR>"
lvim.keys.normal_mode["<F10>"] = "<cmd>lua require'dap'.set_breakpoint(vim.fn.input('Breakpoint condition: '))<CR>"
lvim.keys.normal_mode["<F12>"] = "<cmd>lua require'dap.ui.widgets'.hover()<CR>"
lvim.keys.normal_mode["<F4>"] = "<cmd>lua require'dap'.terminate()<CR>"

lvim.builtin.dap.on_config_done = function(dap)
  local mason_registry = require("mason-registry")
  local codelldb = mason_registry.get_package("codelldb")
  local extension_path = codelldb:get_install_path() .. "/extension/"
  local codelldb_path = extension_path .. "adapter/codelldb"

  dap.adapters.codelldb = {{
    type = 'server',
    port = "${{port}}",
    executable = {{
      command = codelldb_path,
      args = {{"--port", "${{port}}"}},
    }}
  }}

  dap.configurations.cpp = {{
    {{
      name = "Launch file",
      type = "codelldb",
      request = "launch",
      program = function()
        return vim.fn.input('Path to executable: ', vim.fn.getcwd() .. '/', 'file')
      end,
      cwd = '${{workspaceFolder}}',
      stopOnEntry = false,
    }},
  }}

  dap.configurations.c = dap.configurations.cpp
end
"""

# --- Logging Symbols ---
SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "rocket": "🚀",
    "sparkles": "✨",
    "critical": "🔥",
    "debug": "🐛",
    "skip": "⏭️",
}
