"""
Preflight checks run before anything touches the filesystem.
"""
import logging

from devstack.core.docker import Docker
from devstack.core.errors import RuntimeUnavailableError

logger = logging.getLogger(__name__)


def check_container_runtime(docker: Docker) -> None:
    """
    Fail fast when the Docker daemon is unreachable.

    Raises:
        RuntimeUnavailableError: if ``docker info`` fails or docker is missing
    """
    result = docker.info()
    if not result.ok:
        logger.warning(f"runtime_unavailable exit_code={result.exit_code}")
        raise RuntimeUnavailableError(
            "Docker is not running. Please start Docker and try again."
        )
    logger.info("runtime_available")
