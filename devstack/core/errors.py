"""Error types raised while provisioning the development stack."""


class DevstackError(Exception):
    """Base exception for provisioning errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RuntimeUnavailableError(DevstackError):
    """Raised when the container runtime cannot be reached."""


class ModeSelectionError(DevstackError):
    """Raised for an installation mode outside the offered choices."""

    def __init__(self, choice: str):
        self.choice = choice
        super().__init__(f"Invalid choice: {choice!r}. Please choose 1 or 2.")


class CommandError(DevstackError):
    """Raised when an external command exits unsuccessfully."""

    def __init__(self, action: str, result):
        self.action = action
        self.result = result
        detail = (result.stderr or result.stdout or "").strip()
        message = f"{action} failed (exit code {result.exit_code})"
        if result.timed_out:
            message = f"{action} timed out"
        if detail:
            message = f"{message}: {detail.splitlines()[-1]}"
        super().__init__(message)


class ProvisioningError(DevstackError):
    """Raised when a project cannot be brought into the expected state."""


class ReadinessTimeoutError(DevstackError):
    """Raised when services are not ready before the readiness deadline."""

    def __init__(self, pending: list[str], timeout: float):
        self.pending = pending
        self.timeout = timeout
        super().__init__(
            f"Services not ready after {timeout:g}s: {', '.join(pending)}"
        )


class PostStartError(DevstackError):
    """Raised when configuring the running backend service fails."""
