"""
devstack-setup: scaffold the backend/frontend development stack.

Usage:
    devstack-setup                  # interactive mode prompt
    devstack-setup --mode api       # non-interactive
    python main.py --project-dir ./shop
"""
import logging
from pathlib import Path
from typing import Optional

import typer

from devstack.core.config import get_settings
from devstack.core.docker import Docker
from devstack.core.errors import DevstackError, ModeSelectionError
from devstack.core.logging import setup_logging
from devstack.core.mode import DEFAULT_CHOICE, MODE_CHOICES, parse_mode_choice
from devstack.core.pipeline import ProvisioningPipeline
from devstack.core.preflight import check_container_runtime
from devstack.core.reporter import Reporter
from devstack.core.run_context import set_run_id
from devstack.core.runner import CommandRunner
from devstack.core.summary import print_summary
from devstack.schemas import InstallMode

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    help="Scaffold and start the Laravel + React development stack.",
)


def prompt_mode(reporter: Reporter) -> InstallMode:
    reporter.heading("Choose installation type:")
    for key, (_, label) in MODE_CHOICES.items():
        reporter.line(f"  {key}) {label}")
    reporter.line()
    raw = typer.prompt(
        f"Enter your choice (1 or 2) [default: {DEFAULT_CHOICE}]",
        default=DEFAULT_CHOICE,
        show_default=False,
    )
    return parse_mode_choice(raw)


@app.command()
def setup(
    mode: Optional[str] = typer.Option(
        None, "--mode", help="Installation type: 1/full or 2/api (prompts when omitted)"
    ),
    project_dir: Optional[Path] = typer.Option(
        None, "--project-dir", help="Directory holding docker-compose.yml (default: current directory)"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Level of JSON logs written to stderr"
    ),
):
    """Create the projects, start the stack and configure the backend."""
    settings = get_settings(
        project_dir=project_dir.resolve() if project_dir else None,
        log_level=log_level,
    )
    setup_logging(settings.log_level, settings.log_file)
    set_run_id()

    reporter = Reporter()
    reporter.banner(f"{settings.app_name} - Setup")

    runner = CommandRunner(default_timeout=settings.command_timeout)
    try:
        check_container_runtime(Docker(runner, settings.project_dir, settings.compose_command))
    except DevstackError as e:
        reporter.error(e.message)
        raise typer.Exit(code=1)

    try:
        install_mode = parse_mode_choice(mode, allow_names=True) if mode is not None else prompt_mode(reporter)
    except ModeSelectionError:
        reporter.error("Invalid choice. Please run the script again.")
        raise typer.Exit(code=1)

    pipeline = ProvisioningPipeline.from_settings(settings, reporter, runner)
    try:
        pipeline.run(install_mode)
    except DevstackError as e:
        reporter.error(e.message)
        raise typer.Exit(code=1)

    print_summary(reporter, settings, install_mode, pipeline.credentials)
    reporter.console.print("[green]Happy coding! 🚀[/green]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
