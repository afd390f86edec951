import subprocess
from pathlib import Path

import pytest
import requests

from devsetup import config
from devsetup.common.file_utils import ConfigWriter
from devsetup.engine.context import ProvisioningContext
from devsetup.engine.errors import ActionError, ProbeError
from devsetup.engine.probe import EnvironmentProbe
from devsetup.engine.state_store import StateStore
from devsetup.engine.version_resolver import FixedVersionResolver
from devsetup.steps.fonts import FontsStep
from devsetup.steps.lunarvim import LunarVimConfigStep, LunarVimStep, LunarVimSyncStep
from devsetup.steps.neovim import NeovimStep
from devsetup.steps.node_toolchain import NodeProviderStep, NodeStep, NvmStep
from devsetup.steps.python_toolchain import (
    PythonProviderStep,
    PythonStep,
    PyenvStep,
    ShellInitStep,
)
from devsetup.steps.ruby_provider import RubyProviderStep
from devsetup.steps.rust import RustStep
from devsetup.steps.system_packages import SystemPackagesStep

INSTALLER_SCRIPT = "#!/bin/sh\necho installing\n"


@pytest.fixture
def mock_run(mocker):
    return mocker.patch("devsetup.engine.base_step.run_command")


@pytest.fixture
def mock_run_elevated(mocker):
    return mocker.patch("devsetup.engine.base_step.run_elevated_command")


@pytest.fixture
def mock_fetch(mocker):
    return mocker.patch("devsetup.engine.base_step.fetch_text", return_value=INSTALLER_SCRIPT)


@pytest.fixture
def real_probe_context(app_settings, mock_logger):
    """Context with a real probe and writer working inside tmp_path."""
    return ProvisioningContext(
        app_settings,
        logger=mock_logger,
        probe=EnvironmentProbe(app_settings, mock_logger, extra_bin_dirs=[]),
        writer=ConfigWriter(app_settings, mock_logger),
        resolver=FixedVersionResolver({"python": "3.12.4"}),
        state_store=StateStore(app_settings, logger=mock_logger),
    )


def commands(mock):
    return [call.args[0] for call in mock.call_args_list]


# --- system packages ---


def test_system_packages_check_exports_compiler(context, mock_probe):
    mock_probe.all_packages_installed.return_value = True
    mock_probe.which.return_value = Path("/usr/bin/g++")

    assert SystemPackagesStep(context).check() is True
    assert context.env["CXX"] == "/usr/bin/g++"


def test_system_packages_action(context, mock_probe, app_settings):
    mock_probe.which.return_value = Path("/usr/bin/g++")
    apt = context.apt

    assert SystemPackagesStep(context).action() is True

    apt.update.assert_called_once_with(app_settings, raise_error=True)
    apt.upgrade.assert_called_once_with(app_settings, raise_error=True)
    apt.install.assert_called_once_with(
        app_settings.apt.packages, app_settings, update_first=False, raise_error=True
    )
    assert context.env["CXX"] == "/usr/bin/g++"


def test_system_packages_without_upgrade(context, mock_probe, app_settings):
    app_settings.apt.upgrade = False
    mock_probe.which.return_value = None

    SystemPackagesStep(context).action()

    context.apt.upgrade.assert_not_called()
    assert "CXX" not in context.env


# --- python toolchain ---


def test_pyenv_action_pipes_installer_to_bash(context, app_settings, mock_run, mock_fetch):
    PyenvStep(context).action()

    mock_fetch.assert_called_once()
    assert mock_fetch.call_args.args[0] == config.PYENV_INSTALLER_URL
    assert mock_run.call_args.args[0] == ["bash"]
    assert mock_run.call_args.kwargs["cmd_input"] == INSTALLER_SCRIPT
    assert mock_run.call_args.kwargs["env"]["PYENV_ROOT"] == str(app_settings.paths.pyenv_root)


def test_pyenv_action_removes_incomplete_install(context, app_settings, mock_run, mock_fetch):
    leftover = app_settings.paths.pyenv_root / "plugins"
    leftover.mkdir(parents=True)

    PyenvStep(context).action()

    assert not app_settings.paths.pyenv_root.exists()


def test_step_env_includes_exported_variables(context, mock_run, mock_fetch):
    context.env["CXX"] = "/usr/bin/g++"

    PyenvStep(context).action()

    assert mock_run.call_args.kwargs["env"]["CXX"] == "/usr/bin/g++"


def test_shell_init_writes_block_and_drops_guard(real_probe_context, app_settings):
    bashrc = app_settings.paths.shell_init_file
    bashrc.parent.mkdir(parents=True)
    bashrc.write_text('[ -z "$PS1" ] && return\nalias ll="ls -l"\n')
    step = ShellInitStep(real_probe_context)

    assert step.check() is False
    step.action()

    content = bashrc.read_text()
    assert f"# >>> {config.SHELL_INIT_MARKER} >>>" in content
    assert str(app_settings.paths.neovim_bin) in content
    assert f'export PYENV_ROOT="{app_settings.paths.pyenv_root}"' in content
    assert str(app_settings.paths.cargo_bin) in content
    assert "$HOME" not in content
    assert '-z "$PS1"' not in content
    assert step.check() is True

    before = bashrc.read_bytes()
    step.action()
    assert bashrc.read_bytes() == before


def test_shell_init_keeps_guard_when_configured(real_probe_context, app_settings):
    app_settings.strip_interactive_guard = False
    bashrc = app_settings.paths.shell_init_file
    bashrc.parent.mkdir(parents=True)
    bashrc.write_text('[ -z "$PS1" ] && return\n')
    step = ShellInitStep(real_probe_context)

    step.action()

    assert '-z "$PS1"' in bashrc.read_text()
    assert step.check() is True


def test_python_check_without_pyenv(context, mock_probe):
    mock_probe.file_exists.return_value = False

    assert PythonStep(context).check() is False


def test_python_check_satisfied(context, mock_probe):
    mock_probe.file_exists.return_value = True
    mock_probe.directory_exists.return_value = True
    mock_probe.command_output.return_value = "3.12.4\n"

    assert PythonStep(context).check() is True


def test_python_check_other_global_version(context, mock_probe):
    mock_probe.file_exists.return_value = True
    mock_probe.directory_exists.return_value = True
    mock_probe.command_output.return_value = "system\n"

    assert PythonStep(context).check() is False


def test_python_check_blank_global_version(context, mock_probe):
    mock_probe.file_exists.return_value = True
    mock_probe.directory_exists.return_value = True
    mock_probe.command_output.return_value = "\n"

    assert PythonStep(context).check() is False


def test_python_check_resolver_failure_is_probe_error(context, mock_probe, mocker):
    mock_probe.file_exists.return_value = True
    context.resolver = mocker.Mock()
    context.resolver.resolve_latest.side_effect = ActionError("python", "Cannot find latest Python version")

    with pytest.raises(ProbeError):
        PythonStep(context).check()


def test_python_action(context, app_settings, mock_run):
    step = PythonStep(context)

    step.action()

    pyenv = str(app_settings.paths.pyenv_root / "bin" / "pyenv")
    assert commands(mock_run) == [
        [pyenv, "install", "3.12.4", "--skip-existing"],
        [pyenv, "global", "3.12.4"],
    ]
    install_env = mock_run.call_args_list[0].kwargs["env"]
    assert install_env["PYTHON_CONFIGURE_OPTS"] == "--enable-optimizations"
    assert step.summary_line() == "Python 3.12.4 installed via pyenv"


def test_python_provider_action(context, app_settings, mock_run):
    PythonProviderStep(context).action()

    python = str(app_settings.paths.pyenv_root / "versions" / "3.12.4" / "bin" / "python3")
    assert commands(mock_run) == [
        [python, "-m", "pip", "install", "--upgrade", "pip"],
        [python, "-m", "pip", "install", "neovim"],
    ]


def test_python_provider_check(context, mock_probe):
    mock_probe.file_exists.return_value = True
    mock_probe.command_succeeds.return_value = True

    assert PythonProviderStep(context).check() is True
    assert mock_probe.command_succeeds.call_args.args[0][-3:] == ["pip", "show", "neovim"]


# --- ruby, node, rust ---


def test_ruby_provider(context, mock_probe, mock_run_elevated):
    mock_probe.command_succeeds.return_value = False
    step = RubyProviderStep(context)

    assert step.check() is False
    step.action()

    assert mock_run_elevated.call_args.args[0] == ["gem", "install", "neovim", "--no-document"]


def test_nvm_action(context, app_settings, mock_run, mock_fetch):
    NvmStep(context).action()

    assert app_settings.paths.nvm_dir.is_dir()
    assert mock_fetch.call_args.args[0] == config.NVM_INSTALLER_URL_TEMPLATE.format(
        version=config.NVM_VERSION_DEFAULT
    )
    assert mock_run.call_args.kwargs["env"]["NVM_DIR"] == str(app_settings.paths.nvm_dir)


def test_node_action_sources_nvm(context, app_settings, mock_run):
    NodeStep(context).action()

    command = mock_run.call_args.args[0]
    assert command[:2] == ["bash", "-c"]
    assert str(app_settings.paths.nvm_dir / "nvm.sh") in command[2]
    assert command[2].endswith("nvm install 22")


def test_node_provider_check(context, mock_probe):
    mock_probe.command_succeeds.return_value = True

    assert NodeProviderStep(context).check() is True
    assert "npm ls -g neovim" in mock_probe.command_succeeds.call_args.args[0][2]


def test_rust_action(context, mock_run, mock_fetch):
    RustStep(context).action()

    assert mock_fetch.call_args.args[0] == config.RUSTUP_INSTALLER_URL
    assert mock_run.call_args.args[0] == ["sh", "-s", "--", "-y"]


# --- neovim and lunarvim ---


def test_neovim_check_wrong_version(context, mock_probe):
    mock_probe.file_exists.return_value = True
    mock_probe.version_of.return_value = "0.9.4"

    assert NeovimStep(context).check() is False


def test_neovim_check_pinned_version(context, mock_probe):
    mock_probe.file_exists.return_value = True
    mock_probe.version_of.return_value = "0.9.5"

    assert NeovimStep(context).check() is True


def test_neovim_action(context, app_settings, mocker, mock_run_elevated):
    download = mocker.patch(
        "devsetup.steps.neovim.download_file",
        side_effect=lambda url, path, **kwargs: Path(path),
    )

    NeovimStep(context).action()

    assert download.call_args.args[0].endswith("/v0.9.5/nvim-linux64.tar.gz")
    rm_cmd, tar_cmd = commands(mock_run_elevated)
    assert rm_cmd == ["rm", "-rf", str(app_settings.paths.neovim_dir)]
    assert tar_cmd[:4] == ["tar", "-C", str(app_settings.paths.neovim_install_parent), "-xzf"]


def test_neovim_download_failure_propagates(context, mocker, mock_run_elevated):
    mocker.patch(
        "devsetup.steps.neovim.download_file",
        side_effect=requests.HTTPError("404"),
    )

    with pytest.raises(requests.HTTPError):
        NeovimStep(context).action()
    mock_run_elevated.assert_not_called()


def test_lunarvim_action(context, app_settings, mock_run, mock_fetch):
    LunarVimStep(context).action()

    assert "release-1.4/neovim-0.9" in mock_fetch.call_args.args[0]
    assert mock_run.call_args.args[0] == ["bash", "-s", "--", "-y"]
    env = mock_run.call_args.kwargs["env"]
    assert env["LV_BRANCH"] == config.LUNARVIM_BRANCH_DEFAULT
    assert env["PATH"].startswith(str(app_settings.paths.neovim_bin))


def test_lunarvim_config_block(real_probe_context, app_settings):
    step = LunarVimConfigStep(real_probe_context)

    assert step.check() is False
    step.action()

    content = app_settings.paths.lvim_config_file.read_text()
    assert content.startswith(f"-- >>> {config.LVIM_CONFIG_MARKER} >>>")
    assert "vim.g.python3_host_prog = '" in content
    assert "/versions/3.12.4/bin/python3'" in content
    assert 'port = "${port}"' in content
    assert step.check() is True


def test_lunarvim_sync_relies_on_state(context, app_settings, mock_run):
    step = LunarVimSyncStep(context)

    assert step.check() is False
    step.action()
    context.state_store.mark_completed(step.name)

    assert mock_run.call_args.args[0] == [
        str(app_settings.paths.local_bin / "lvim"),
        "--headless",
        "+LvimUpdate",
        "+LvimSyncCorePlugins",
        "+q",
    ]
    assert step.check() is True


# --- fonts ---


def test_fonts_installs_getnf_when_missing(context, app_settings, mock_probe, mock_run, mock_fetch):
    mock_probe.which.return_value = None

    FontsStep(context).action()

    assert mock_fetch.call_args.args[0] == config.GETNF_INSTALLER_URL
    assert commands(mock_run) == [
        ["bash", "-s", "--"],
        [str(app_settings.paths.local_bin / "getnf"), "-i", "JetBrainsMono"],
        ["fc-cache"],
    ]


def test_fonts_check(context, mock_probe):
    mock_probe.font_installed.return_value = True

    assert FontsStep(context).check() is True
    mock_probe.font_installed.assert_called_once_with(config.NERD_FONT_PATTERN_DEFAULT)


def test_command_failure_surfaces_from_action(context, mock_run, mock_fetch):
    mock_run.side_effect = subprocess.CalledProcessError(1, ["sh"])

    with pytest.raises(subprocess.CalledProcessError):
        RustStep(context).action()
