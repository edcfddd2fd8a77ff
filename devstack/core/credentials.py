"""
Credentials for the database and the admin UI.

Development defaults are only used when explicitly enabled
(DEVSTACK_USE_DEFAULT_CREDENTIALS=true). Otherwise unique secrets are
generated on first run and stored under the state directory so that
later runs reuse them. The stored file is readable by the owner only.
"""
import logging
import os
import secrets
from pathlib import Path

from pydantic import ValidationError

from devstack.core.config import Settings
from devstack.core.envfile import EnvFile
from devstack.core.errors import ProvisioningError
from devstack.core.files import ProjectFiles
from devstack.schemas import Credentials

logger = logging.getLogger(__name__)

CREDENTIALS_FILE = "credentials.json"
COMPOSE_ENV_FILE = ".env"
COMPOSE_FILES = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")

DEFAULT_CREDENTIALS = Credentials(
    db_username="laravel",
    db_password="secret",
    admin_email="admin@admin.com",
    admin_password="admin",
    is_default=True,
)


def generate_credentials() -> Credentials:
    return Credentials(
        db_username="laravel",
        db_password=secrets.token_urlsafe(24),
        admin_email="admin@example.com",
        admin_password=secrets.token_urlsafe(16),
    )


def load_or_create_credentials(settings: Settings) -> Credentials:
    """Return the credentials for this project, creating them on first use."""
    if settings.use_default_credentials:
        logger.warning("default_credentials_in_use")
        return DEFAULT_CREDENTIALS

    path = settings.state_path / CREDENTIALS_FILE
    if path.is_file():
        try:
            credentials = Credentials.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.error(f"credentials_unreadable path={path}")
            raise ProvisioningError(
                f"Cannot read {settings.state_dir}/{CREDENTIALS_FILE}: {e.__class__.__name__}; "
                f"delete it to regenerate the credentials"
            ) from e
        logger.info("credentials_loaded")
        return credentials

    credentials = generate_credentials()
    _store(path, credentials)
    logger.info("credentials_generated")
    return credentials


def _store(path: Path, credentials: Credentials) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fhand:
        fhand.write(credentials.model_dump_json(indent=2))


def write_compose_env(files: ProjectFiles, credentials: Credentials) -> bool:
    """
    Merge the credentials into the compose-level .env file.

    Docker Compose reads this file for variable substitution, so the
    database and pgAdmin containers start with the same secrets the
    backend is configured with. Returns True when the file changed.
    """
    env = EnvFile.parse(files.read_text(COMPOSE_ENV_FILE) or "")
    env.update(
        {
            "DB_USERNAME": credentials.db_username,
            "DB_PASSWORD": credentials.db_password,
            "PGADMIN_DEFAULT_EMAIL": credentials.admin_email,
            "PGADMIN_DEFAULT_PASSWORD": credentials.admin_password,
        }
    )
    return files.write_if_changed(COMPOSE_ENV_FILE, env.render())


def compose_files_missing_substitution(files: ProjectFiles) -> list[str]:
    """
    Return the compose files that do not take the database password from ``${DB_PASSWORD}``.

    Postgres in such a stack keeps whatever password the file hardcodes,
    which will not match generated credentials.
    """
    missing = []
    for name in COMPOSE_FILES:
        text = files.read_text(name)
        if text is not None and "${DB_PASSWORD" not in text:
            missing.append(name)
    return missing
