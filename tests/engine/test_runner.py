import subprocess
from unittest.mock import MagicMock

import pytest
import requests

from devsetup.common.file_utils import ConfigWriter
from devsetup.engine.base_step import FunctionStep
from devsetup.engine.errors import ActionError, ConfigWriteError, ProbeError
from devsetup.engine.models import (
    MAX_STEP_EXIT_CODE,
    RunResult,
    RunState,
    RunSummary,
    StepStatus,
)
from devsetup.engine.runner import DRY_RUN_MESSAGE, StepRunner
from devsetup.engine.state_store import StateStore


def make_step(name, check=False, action=None, critical=True):
    """A FunctionStep whose check and action are MagicMocks."""
    check_mock = MagicMock(return_value=check)
    action_mock = action if action is not None else MagicMock(return_value=None)
    step = FunctionStep(name, action_mock, check_mock, critical=critical)
    return step, check_mock, action_mock


@pytest.fixture
def runner(app_settings, mock_logger):
    return StepRunner(app_settings, logger=mock_logger)


def statuses(results):
    return [result.status for result in results]


def test_succeeded_skipped_failed_scenario(runner):
    a, _, a_action = make_step("A", check=False)
    b, _, b_action = make_step("B", check=True)
    c, _, _ = make_step("C", action=MagicMock(side_effect=ActionError("C", "boom")))
    d, d_check, d_action = make_step("D")

    results = runner.run([a, b, c, d])

    assert statuses(results) == [
        StepStatus.SUCCEEDED,
        StepStatus.SKIPPED,
        StepStatus.FAILED,
    ]
    a_action.assert_called_once()
    b_action.assert_not_called()
    d_check.assert_not_called()
    d_action.assert_not_called()
    assert runner.state == RunState.FAILED
    summary = runner.summary()
    assert summary.failed_step == "C"
    assert summary.exit_code == 3


def test_critical_failure_leaves_exactly_k_results(runner):
    steps = [make_step(f"s{i}")[0] for i in range(1, 6)]
    steps[1] = make_step(
        "s2", action=MagicMock(side_effect=subprocess.CalledProcessError(1, ["false"]))
    )[0]

    results = runner.run(steps)

    assert len(results) == 2
    assert results[-1].step_name == "s2"
    assert results[-1].status == StepStatus.FAILED


def test_non_critical_failure_continues(runner):
    failing, _, _ = make_step(
        "fonts", action=MagicMock(side_effect=ActionError("fonts", "getnf failed")), critical=False
    )
    after, after_check, after_action = make_step("after")

    results = runner.run([failing, after])

    after_check.assert_called_once()
    after_action.assert_called_once()
    assert statuses(results) == [StepStatus.FAILED, StepStatus.SUCCEEDED]
    assert runner.state == RunState.COMPLETED
    assert runner.summary().exit_code == 0


def test_satisfied_check_never_calls_action(runner):
    step, check, action = make_step("pyenv", check=True)

    results = runner.run([step])

    check.assert_called_once()
    action.assert_not_called()
    assert results[0].status == StepStatus.SKIPPED


def test_action_returning_false_is_a_failure(runner):
    step, _, _ = make_step("rust", action=MagicMock(return_value=False))

    results = runner.run([step])

    assert results[0].status == StepStatus.FAILED
    assert "action reported failure" in results[0].message


def test_failure_message_includes_captured_output(runner, mock_logger):
    error = subprocess.CalledProcessError(
        100, ["apt-get", "install", "tmux"], output="", stderr="E: Unable to locate package"
    )
    step, _, _ = make_step("system_packages", action=MagicMock(side_effect=error))

    results = runner.run([step])

    message = results[0].message
    assert "apt-get install tmux" in message
    assert "rc 100" in message
    assert "E: Unable to locate package" in message
    logged_errors = " ".join(str(call.args[0]) for call in mock_logger.error.call_args_list)
    assert "system_packages" in logged_errors


@pytest.mark.parametrize(
    "error",
    [
        FileNotFoundError(2, "No such file or directory", "gem"),
        requests.ConnectionError("network unreachable"),
        ActionError("x", "bad", returncode=3, output="details"),
    ],
)
def test_action_failure_types_are_recorded(runner, error):
    step, _, _ = make_step("x", action=MagicMock(side_effect=error))

    results = runner.run([step])

    assert results[0].status == StepStatus.FAILED
    assert runner.state == RunState.FAILED


def test_config_write_error_is_fatal_even_when_not_critical(runner):
    step, _, _ = make_step(
        "shell_init",
        action=MagicMock(side_effect=ConfigWriteError("/home/u/.bashrc", "Permission denied")),
        critical=False,
    )
    after, after_check, _ = make_step("after")

    results = runner.run([step, after])

    assert len(results) == 1
    after_check.assert_not_called()
    assert runner.state == RunState.FAILED
    assert "Permission denied" in results[0].message


def test_unexpected_exception_propagates(runner):
    step, _, _ = make_step("buggy", action=MagicMock(side_effect=ValueError("bug")))

    with pytest.raises(ValueError):
        runner.run([step])


def test_probe_error_treated_as_not_satisfied(runner, mock_logger):
    check = MagicMock(side_effect=ProbeError("permission denied on /opt"))
    action = MagicMock(return_value=None)
    step = FunctionStep("neovim", action, check)

    results = runner.run([step])

    action.assert_called_once()
    assert results[0].status == StepStatus.SUCCEEDED
    mock_logger.warning.assert_called()


def test_unreadable_config_in_check_is_not_satisfied(runner, app_settings, mock_logger, tmp_path, mocker):
    bashrc = tmp_path / ".bashrc"
    bashrc.write_text("")
    writer = ConfigWriter(app_settings, mock_logger)
    mocker.patch(
        "devsetup.common.file_utils.Path.read_text",
        side_effect=PermissionError(13, "Permission denied"),
    )
    action = MagicMock(return_value=None)
    step = FunctionStep("shell_init", action, lambda: writer.has_block(bashrc, "PYENV"))

    results = runner.run([step])

    action.assert_called_once()
    assert statuses(results) == [StepStatus.SUCCEEDED]
    assert runner.state == RunState.COMPLETED


def test_dry_run_never_calls_action(app_settings, mock_logger):
    runner = StepRunner(app_settings, logger=mock_logger, dry_run=True)
    pending, _, pending_action = make_step("pending", check=False)
    done, _, _ = make_step("done", check=True)

    results = runner.run([pending, done])

    pending_action.assert_not_called()
    assert statuses(results) == [StepStatus.SKIPPED, StepStatus.SKIPPED]
    assert results[0].message == DRY_RUN_MESSAGE
    assert runner.state == RunState.COMPLETED


def test_from_step_skips_earlier_steps(runner):
    first, first_check, _ = make_step("first")
    second, _, second_action = make_step("second")
    third, _, third_action = make_step("third")

    results = runner.run([first, second, third], from_step="second")

    first_check.assert_not_called()
    second_action.assert_called_once()
    third_action.assert_called_once()
    assert [r.step_name for r in results] == ["second", "third"]


def test_from_step_failure_index_counts_full_list(runner):
    first, _, _ = make_step("first")
    second, _, _ = make_step("second", action=MagicMock(return_value=False))

    runner.run([first, second], from_step="second")

    assert runner.summary().exit_code == 2


def test_unknown_from_step_raises_before_running(runner):
    step, check, _ = make_step("only")

    with pytest.raises(KeyError):
        runner.run([step], from_step="missing")

    check.assert_not_called()
    assert runner.results == []
    assert runner.state == RunState.PENDING


def test_successes_recorded_in_state_store(app_settings, mock_logger):
    store = StateStore(app_settings, logger=mock_logger)
    runner = StepRunner(app_settings, logger=mock_logger, state_store=store)
    ok, _, _ = make_step("ok")
    skipped, _, _ = make_step("skipped", check=True)

    runner.run([ok, skipped])

    assert store.completed_steps() == ["ok"]


def test_second_run_is_all_skipped(app_settings, mock_logger):
    installed = set()

    def build_steps():
        return [
            FunctionStep(
                name,
                action=lambda name=name: installed.add(name),
                check=lambda name=name: name in installed,
            )
            for name in ("pyenv", "nvm", "rust")
        ]

    first = StepRunner(app_settings, logger=mock_logger).run(build_steps())
    second = StepRunner(app_settings, logger=mock_logger).run(build_steps())

    assert statuses(first) == [StepStatus.SUCCEEDED] * 3
    assert statuses(second) == [StepStatus.SKIPPED] * 3


def test_results_are_immutable(runner):
    step, _, _ = make_step("a")
    result = runner.run([step])[0]

    with pytest.raises(AttributeError):
        result.status = StepStatus.FAILED


def test_exit_code_is_capped():
    summary = RunSummary(
        results=[RunResult("x", StepStatus.FAILED)],
        state=RunState.FAILED,
        failed_step="x",
        failed_index=300,
    )
    assert summary.exit_code == MAX_STEP_EXIT_CODE


def test_summary_counts_statuses():
    summary = RunSummary(
        results=[
            RunResult("a", StepStatus.SUCCEEDED),
            RunResult("b", StepStatus.SKIPPED),
            RunResult("c", StepStatus.SKIPPED),
        ],
        state=RunState.COMPLETED,
    )
    assert summary.exit_code == 0
    assert summary.count(StepStatus.SKIPPED) == 2
