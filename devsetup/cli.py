# devsetup/cli.py
# -*- coding: utf-8 -*-
"""
Command line interface.

    devsetup [-v] [--config PATH] run [--dry-run] [--from-step NAME] [--list]
    devsetup [-v] [--config PATH] status

``run`` exits 0 when every step completed and otherwise with the 1-based
position of the critical step that failed. ``status`` exits 0 only when
every step is already satisfied.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import click

from devsetup import __version__
from devsetup.common.logging_config import setup_logging
from devsetup.config_loader import DEFAULT_CONFIG_FILE, load_app_settings
from devsetup.config_models import AppSettings
from devsetup.engine.orchestrator import ProvisioningOrchestrator


def _bootstrap(ctx: click.Context) -> Tuple[AppSettings, logging.LoggerAdapter]:
    """Load settings and configure logging from the group options."""
    cli_overrides = {"logging.level": "DEBUG"} if ctx.obj["verbose"] else None
    app_settings = load_app_settings(
        cli_overrides=cli_overrides,
        config_file_path=ctx.obj["config_file"],
    )
    logger = setup_logging(
        log_level=app_settings.logging.level,
        log_file_path=app_settings.logging.file,
        use_color=app_settings.logging.color,
    )
    return app_settings, logger


@click.group()
@click.version_option(__version__, prog_name="devsetup")
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level.")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"YAML configuration file (default: ./{DEFAULT_CONFIG_FILE}).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_file: Optional[Path]):
    """Provision a LunarVim development toolchain, step by step."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_file"] = config_file


@cli.command(name="run")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Evaluate every check but run no actions.",
)
@click.option(
    "--from-step",
    "from_step",
    metavar="NAME",
    default=None,
    help="Start at the named step; earlier steps are not evaluated.",
)
@click.option(
    "--list", "list_only", is_flag=True, help="List the steps in order and exit."
)
@click.pass_context
def run_command(
    ctx: click.Context, dry_run: bool, from_step: Optional[str], list_only: bool
):
    """Run the provisioning steps in order."""
    app_settings, logger = _bootstrap(ctx)
    orchestrator = ProvisioningOrchestrator(app_settings, logger=logger)

    if list_only:
        for index, step in enumerate(orchestrator.list_steps(), start=1):
            kind = "critical" if step.critical else "optional"
            click.echo(f"{index:>2}. {step.name:<16} {kind:<8}  {step.description}")
        ctx.exit(0)

    if from_step is not None and from_step not in {
        step.name for step in orchestrator.list_steps()
    }:
        raise click.BadParameter(
            f"no step named '{from_step}'. Use 'run --list' to see the step names.",
            param_hint="--from-step",
        )

    summary = orchestrator.run(dry_run=dry_run, from_step=from_step)
    if summary.failed_step:
        click.secho(
            f"Provisioning stopped at step {summary.failed_index}: {summary.failed_step}",
            fg="red",
            err=True,
        )
    ctx.exit(summary.exit_code)


@cli.command(name="status")
@click.pass_context
def status_command(ctx: click.Context):
    """Show which steps are already satisfied on this machine."""
    app_settings, logger = _bootstrap(ctx)
    orchestrator = ProvisioningOrchestrator(app_settings, logger=logger)
    status = orchestrator.check_status()
    for name, satisfied in status.items():
        click.secho(
            f"{'satisfied' if satisfied else 'pending':<9}  {name}",
            fg="green" if satisfied else "yellow",
        )
    ctx.exit(0 if all(status.values()) else 1)


def main(argv: Optional[List[str]] = None) -> int:
    """Console-script entry point; returns the process exit code."""
    try:
        result = cli.main(args=argv, prog_name="devsetup", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return result if isinstance(result, int) else 0
