"""
Backend Provisioner - Laravel project materialization and configuration.

Steps:
- scaffold: composer create-project in a throwaway container (only if absent)
- prune: API-only mode drops the view/asset trees
- permissions: best-effort chmod so the php container can write storage
- env: structured merge of backend/.env towards the compose services
"""
import logging
import os
from pathlib import Path
from typing import Optional

from devstack.core.config import Settings
from devstack.core.docker import Docker
from devstack.core.envfile import EnvFile
from devstack.core.files import ProjectFiles
from devstack.core.runner import ensure_success
from devstack.schemas import Credentials, InstallMode

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

SCAFFOLD_PACKAGE = "laravel/laravel"

# Generated trees that an API-only backend does not serve
API_ONLY_PRUNED_DIRS = ("resources/views", "resources/js", "resources/css")

# Directories the web server writes to at runtime
WRITABLE_DIRS = ("storage", "bootstrap/cache")

DIR_MODE = 0o755
FILE_MODE = 0o755
WRITABLE_MODE = 0o777

ENV_FILE = ".env"
SEARCH_SECTION = "Elasticsearch Configuration"


class BackendProvisioner:
    """Creates and configures the backend project."""

    def __init__(self, settings: Settings, docker: Docker, files: ProjectFiles):
        self.settings = settings
        self.docker = docker
        self.files = files

    @property
    def path(self) -> Path:
        return self.settings.backend_path

    def exists(self) -> bool:
        return self.path.is_dir()

    # -------------------------------------------------------------------------
    # Scaffold
    # -------------------------------------------------------------------------

    def scaffold(self, mode: InstallMode) -> bool:
        """
        Create the backend project unless its directory already exists.

        Returns:
            True if the project was created, False if it was left untouched
        """
        if self.exists():
            logger.info(f"backend_scaffold_skipped path={self.path}")
            return False

        command = ["create-project", SCAFFOLD_PACKAGE, self.settings.backend_dir]
        if mode == InstallMode.API:
            command.append("--prefer-dist")

        logger.info(f"backend_scaffold_start mode={mode.value}")
        result = self.docker.run_ephemeral(
            self.settings.composer_image,
            self.settings.project_dir,
            command,
            capture=False,
        )
        ensure_success(result, "Creating backend project")

        if mode == InstallMode.API:
            self.prune_for_api()

        logger.info(f"backend_scaffold_done mode={mode.value}")
        return True

    def prune_for_api(self) -> None:
        """Empty the view and asset trees of an API-only project."""
        for relpath in API_ONLY_PRUNED_DIRS:
            self.files.clear_directory(relpath)

    # -------------------------------------------------------------------------
    # Permissions
    # -------------------------------------------------------------------------

    def normalize_permissions(self) -> int:
        """
        Best-effort permission normalization.

        Files written by root inside tool containers usually cannot be
        chmod-ed by the host user; such failures are logged and counted,
        never raised.

        Returns:
            Number of paths whose mode could not be changed
        """
        if not self.exists():
            return 0

        failures = _chmod_tree(self.path, DIR_MODE, FILE_MODE)
        for relpath in WRITABLE_DIRS:
            target = self.path / relpath
            if target.exists():
                failures += _chmod_tree(target, WRITABLE_MODE, WRITABLE_MODE)

        if failures:
            logger.warning(f"backend_permissions_partial failures={failures}")
        return failures

    # -------------------------------------------------------------------------
    # Environment
    # -------------------------------------------------------------------------

    def env_overrides(self, credentials: Credentials) -> dict[str, str]:
        s = self.settings
        return {
            "APP_NAME": s.app_name,
            "DB_CONNECTION": "pgsql",
            "DB_HOST": s.database_host,
            "DB_PORT": str(s.database_port),
            "DB_DATABASE": s.database_name,
            "DB_USERNAME": credentials.db_username,
            "DB_PASSWORD": credentials.db_password,
            "REDIS_HOST": s.redis_host,
            "REDIS_PORT": str(s.redis_port),
        }

    def search_overrides(self) -> dict[str, str]:
        s = self.settings
        return {
            "ELASTICSEARCH_HOST": s.elasticsearch_host,
            "ELASTICSEARCH_PORT": str(s.elasticsearch_port),
            "SCOUT_DRIVER": "elasticsearch",
        }

    def configure_env(self, credentials: Credentials) -> Optional[bool]:
        """
        Point the backend at the compose services.

        Returns:
            None if backend/.env does not exist, otherwise whether it changed
        """
        text = self.files.read_text(ENV_FILE)
        if text is None:
            logger.warning("backend_env_missing")
            return None

        env = EnvFile.parse(text)
        env.update(self.env_overrides(credentials))
        env.update(self.search_overrides(), section=SEARCH_SECTION)

        changed = self.files.write_if_changed(ENV_FILE, env.render())
        logger.info(f"backend_env_configured changed={changed}")
        return changed


def _chmod_tree(root: Path, dir_mode: int, file_mode: int) -> int:
    failures = 0

    def _chmod(path: str, mode: int) -> None:
        nonlocal failures
        try:
            os.chmod(path, mode)
        except OSError:
            failures += 1

    _chmod(str(root), dir_mode)
    # chmod follows symlinks, so links are left alone
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames:
            path = os.path.join(dirpath, name)
            if not os.path.islink(path):
                _chmod(path, dir_mode)
        for name in filenames:
            path = os.path.join(dirpath, name)
            if not os.path.islink(path):
                _chmod(path, file_mode)
    return failures
