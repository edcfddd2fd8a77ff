"""
Thin wrapper over the docker CLI and Docker Compose.

Commands are built as argv lists and handed to the CommandRunner; nothing
here talks to the Docker API directly.
"""
import logging
from pathlib import Path
from typing import Optional

from devstack.core.runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

CONTAINER_WORKDIR = "/app"


class Docker:
    """Builds and runs docker / docker compose invocations."""

    def __init__(
        self,
        runner: CommandRunner,
        project_dir: Path,
        compose_command: Optional[list[str]] = None,
    ):
        self.runner = runner
        self.project_dir = Path(project_dir)
        self.compose_command = list(compose_command or ["docker", "compose"])

    def info(self) -> CommandResult:
        return self.runner.run(["docker", "info"], timeout=30)

    def run_ephemeral(
        self,
        image: str,
        mount: Path,
        command: list[str],
        input_text: Optional[str] = None,
        capture: bool = True,
    ) -> CommandResult:
        """Run ``command`` in a throwaway container with ``mount`` at /app."""
        cmd = ["docker", "run", "--rm"]
        if input_text is not None:
            cmd.append("-i")
        cmd += [
            "-v", f"{Path(mount).resolve()}:{CONTAINER_WORKDIR}",
            "-w", CONTAINER_WORKDIR,
            image,
            *command,
        ]
        logger.info(f"ephemeral_run image={image} mount={mount}")
        return self.runner.run(cmd, cwd=self.project_dir, input_text=input_text, capture=capture)

    def compose(self, *args: str, capture: bool = True) -> CommandResult:
        return self.runner.run(
            [*self.compose_command, *args], cwd=self.project_dir, capture=capture
        )

    def compose_exec(
        self,
        service: str,
        command: list[str],
        user: Optional[str] = None,
        input_text: Optional[str] = None,
        capture: bool = True,
    ) -> CommandResult:
        """Run ``command`` inside a running compose service (no TTY)."""
        cmd = [*self.compose_command, "exec", "-T"]
        if user:
            cmd += ["-u", user]
        cmd += [service, *command]
        return self.runner.run(cmd, cwd=self.project_dir, input_text=input_text, capture=capture)

    def running_services(self) -> set[str]:
        result = self.compose("ps", "--status", "running", "--services")
        if not result.ok:
            return set()
        return {line.strip() for line in result.stdout.splitlines() if line.strip()}
