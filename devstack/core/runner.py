"""
Command Runner - blocking execution of external tools.

Every provisioning step is a call to docker, composer, npm or artisan.
This module is the single place where processes are spawned.

Security:
- No shell=True anywhere
- Only subprocess.run([...]) with timeouts
- Inputs are passed as argv or stdin, never interpolated into a host shell
"""
import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from devstack.core.errors import CommandError

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

COMMAND_TIMEOUT = 1800  # 30 minutes, composer create-project is slow
MAX_OUTPUT_SIZE = 512 * 1024  # per captured stream


@dataclass
class CommandResult:
    """Result of a subprocess command."""
    command: list[str]
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


def ensure_success(result: CommandResult, action: str) -> CommandResult:
    """Raise CommandError unless the command succeeded."""
    if not result.ok:
        raise CommandError(action, result)
    return result


def _truncate(text: str) -> str:
    if len(text) > MAX_OUTPUT_SIZE:
        return text[:MAX_OUTPUT_SIZE] + f"\n... (truncated, {len(text)} total chars)"
    return text


class CommandRunner:
    """Runs external commands synchronously."""

    def __init__(self, default_timeout: int = COMMAND_TIMEOUT):
        self.default_timeout = default_timeout

    def run(
        self,
        cmd: list[str],
        cwd: Optional[Path] = None,
        timeout: Optional[int] = None,
        input_text: Optional[str] = None,
        capture: bool = True,
    ) -> CommandResult:
        """
        Execute a command with no shell.

        Args:
            cmd: Command as list of strings
            cwd: Working directory
            timeout: Timeout in seconds (runner default when omitted)
            input_text: Text written to the process stdin
            capture: Capture output; when False the child inherits the
                terminal so long-running tools show their own progress

        Returns:
            CommandResult with output and status
        """
        if not isinstance(cmd, list):
            raise TypeError("Command must be a list, not a string")
        if len(cmd) == 0:
            raise ValueError("Command cannot be empty")

        timeout = timeout or self.default_timeout
        start_time = datetime.now(timezone.utc)
        timed_out = False

        logger.info(f"command_start cmd={' '.join(cmd[:4])}", extra={"command": cmd})

        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                input=input_text,
                capture_output=capture,
                timeout=timeout,
                encoding="utf-8",
                errors="replace",
            )
            stdout = result.stdout or ""
            stderr = result.stderr or ""
            exit_code = result.returncode

        except subprocess.TimeoutExpired as e:
            stdout = _decode(e.stdout)
            stderr = _decode(e.stderr)
            exit_code = -1
            timed_out = True
            logger.warning(f"command_timeout cmd={cmd[0]} timeout={timeout}")

        except FileNotFoundError:
            stdout = ""
            stderr = f"{cmd[0]}: command not found"
            exit_code = 127

        except subprocess.SubprocessError as e:
            stdout = ""
            stderr = str(e)
            exit_code = -1

        duration_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)

        logger.info(
            f"command_done cmd={cmd[0]} exit_code={exit_code}",
            extra={"exit_code": exit_code, "duration_ms": duration_ms},
        )

        return CommandResult(
            command=cmd,
            exit_code=exit_code,
            stdout=_truncate(stdout),
            stderr=_truncate(stderr),
            duration_ms=duration_ms,
            timed_out=timed_out,
        )


def _decode(data) -> str:
    if not data:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
