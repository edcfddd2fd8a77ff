"""
Stack Controller - build, start and wait for the compose services.

Readiness is polled, not slept: each ServiceCheck is probed every
``poll_interval`` seconds until all pass or ``readiness_timeout`` runs out.
"""
import logging
import socket
import time
from typing import Callable, Optional

import httpx

from devstack.core.config import Settings
from devstack.core.docker import Docker
from devstack.core.errors import ReadinessTimeoutError
from devstack.core.runner import ensure_success
from devstack.schemas import ServiceCheck

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 3.0  # seconds per probe


def default_checks(settings: Settings) -> list[ServiceCheck]:
    """Services the post-start steps depend on."""
    return [
        ServiceCheck(name=settings.backend_service, kind="container"),
        ServiceCheck(name="postgres", kind="tcp", port=settings.database_port),
        ServiceCheck(name="redis", kind="tcp", port=settings.redis_port),
        ServiceCheck(name="elasticsearch", kind="http", port=settings.elasticsearch_port),
        ServiceCheck(name="backend-http", kind="tcp", port=settings.api_port),
    ]


def is_port_open(host: str, port: int, timeout: float = PROBE_TIMEOUT) -> bool:
    """Check if a port is open (service is listening)."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def is_http_ready(url: str, timeout: float = PROBE_TIMEOUT) -> bool:
    """Any non-5xx answer counts as ready."""
    try:
        response = httpx.get(url, timeout=timeout)
    except httpx.HTTPError:
        return False
    return response.status_code < 500


class StackController:
    """Drives ``docker compose`` for the whole declared service set."""

    def __init__(
        self,
        settings: Settings,
        docker: Docker,
        probe: Optional[Callable[[ServiceCheck], bool]] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.docker = docker
        self.probe = probe or self.probe_service
        self.sleep = sleep
        self.clock = clock

    def build(self) -> None:
        logger.info("stack_build_start")
        ensure_success(self.docker.compose("build", capture=False), "Building Docker images")

    def start(self) -> None:
        logger.info("stack_start")
        ensure_success(self.docker.compose("up", "-d", capture=False), "Starting Docker containers")

    def probe_service(self, check: ServiceCheck) -> bool:
        if check.kind == "container":
            return check.name in self.docker.running_services()
        if check.kind == "tcp":
            return is_port_open(check.host, check.port)
        return is_http_ready(check.url)

    def wait_until_ready(self, checks: Optional[list[ServiceCheck]] = None) -> list[str]:
        """
        Poll every check until all pass.

        Returns:
            Names of the checked services, in order

        Raises:
            ReadinessTimeoutError: listing the services still pending at the deadline
        """
        checks = checks if checks is not None else default_checks(self.settings)
        timeout = self.settings.readiness_timeout
        deadline = self.clock() + timeout
        pending = list(checks)

        while True:
            still_pending = []
            for check in pending:
                if self.probe(check):
                    logger.info(f"service_ready service={check.name}", extra={"service": check.name})
                else:
                    still_pending.append(check)
            pending = still_pending

            if not pending:
                return [c.name for c in checks]

            if self.clock() >= deadline:
                names = [c.name for c in pending]
                logger.error(f"stack_not_ready pending={','.join(names)}")
                raise ReadinessTimeoutError(names, timeout)

            self.sleep(self.settings.poll_interval)
