"""
Provisioning configuration from environment variables.
All settings are optional with development defaults.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


ENV_FILE = ".devstack.env"


class Settings(BaseSettings):
    """Settings read from DEVSTACK_* variables and an optional .devstack.env file."""

    model_config = SettingsConfigDict(
        env_prefix="DEVSTACK_",
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Layout
    project_dir: Path = Field(default_factory=Path.cwd)
    backend_dir: str = "backend"
    frontend_dir: str = "frontend"
    state_dir: str = ".devstack"

    # Images used for throwaway containers
    composer_image: str = "composer:latest"
    node_image: str = "node:20-alpine"
    helper_image: str = "alpine:latest"

    # Compose stack
    compose_command: list[str] = ["docker", "compose"]
    backend_service: str = "php"
    frontend_service: str = "node"
    backend_container_path: str = "/var/www/backend"

    # Application
    app_name: str = "Smart Stock Management"
    database_name: str = "laravel"
    database_host: str = "postgres"
    database_port: int = 5432
    redis_host: str = "redis"
    redis_port: int = 6379
    elasticsearch_host: str = "elasticsearch"
    elasticsearch_port: int = 9200

    # Published ports (host side)
    api_port: int = 8888
    frontend_port: int = 5173
    pgadmin_port: int = 5050
    kibana_port: int = 5601

    # Credentials
    use_default_credentials: bool = False

    # Timeouts (seconds)
    command_timeout: int = 1800
    readiness_timeout: float = 180.0
    poll_interval: float = 2.0

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @property
    def backend_path(self) -> Path:
        return self.project_dir / self.backend_dir

    @property
    def frontend_path(self) -> Path:
        return self.project_dir / self.frontend_dir

    @property
    def state_path(self) -> Path:
        return self.project_dir / self.state_dir

    @property
    def api_url(self) -> str:
        return f"http://localhost:{self.api_port}/api/v1"


def get_settings(**overrides) -> Settings:
    """Load settings from the environment, applying explicit overrides."""
    overrides = {k: v for k, v in overrides.items() if v is not None}
    project_dir = overrides.get("project_dir")
    if project_dir is not None:
        # The project's own file wins over one in the working directory
        overrides["_env_file"] = (ENV_FILE, Path(project_dir) / ENV_FILE)
    return Settings(**overrides)
