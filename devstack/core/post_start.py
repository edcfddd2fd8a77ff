"""
Post-Start Configurator - one-time application setup inside the running backend.

Every step checks the current state first:
- routes/api.php is only written when absent
- the api routing line is only spliced in when bootstrap/app.php lacks it
- laravel/sanctum is only required when composer.json does not declare it
Migrations run on every invocation (artisan skips applied ones).
"""
import json
import logging

from devstack.core.config import Settings
from devstack.core.docker import Docker
from devstack.core.errors import PostStartError
from devstack.core.files import ProjectFiles
from devstack.core.runner import ensure_success

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

ROUTES_FILE = "routes/api.php"
BOOTSTRAP_FILE = "bootstrap/app.php"
COMPOSER_FILE = "composer.json"

AUTH_PACKAGE = "laravel/sanctum"

API_ROUTES = """<?php

use Illuminate\\Http\\Request;
use Illuminate\\Support\\Facades\\Route;

Route::get("/", function () {
    return response()->json([
        "message" => "API is working",
        "version" => "1.0.0",
        "status" => "active"
    ]);
});

Route::get("/user", function (Request $request) {
    return $request->user();
})->middleware("auth:sanctum");
"""

# Presence of this marker means api routes are already registered
API_REGISTRATION_MARKER = "api: __DIR__"
API_REGISTRATION_LINE = "api: __DIR__.'/../routes/api.php',"
WEB_REGISTRATION_PREFIX = "web: __DIR__"


def register_api_routes(bootstrap: str) -> str:
    """
    Return ``bootstrap`` with the api routing line placed after the web one.

    Text already containing the marker is returned unchanged.

    Raises:
        PostStartError: if there is no web routing line to anchor on
    """
    if API_REGISTRATION_MARKER in bootstrap:
        return bootstrap

    lines = bootstrap.split("\n")
    for index, line in enumerate(lines):
        stripped = line.lstrip()
        if stripped.startswith(WEB_REGISTRATION_PREFIX):
            indent = line[: len(line) - len(stripped)]
            lines.insert(index + 1, f"{indent}{API_REGISTRATION_LINE}")
            return "\n".join(lines)

    raise PostStartError(
        f"No web routing line found in {BOOTSTRAP_FILE}; register routes/api.php manually"
    )


class PostStartConfigurator:
    """Configures the backend application once its container runs."""

    def __init__(self, settings: Settings, docker: Docker, files: ProjectFiles):
        self.settings = settings
        self.docker = docker
        self.files = files

    def ensure_api_routes(self) -> bool:
        """Create routes/api.php if absent. Returns True when it was written."""
        if self.files.exists(ROUTES_FILE):
            logger.info("api_routes_exist")
            return False
        self.files.write_text(ROUTES_FILE, API_ROUTES)
        logger.info("api_routes_created")
        return True

    def ensure_api_registration(self) -> bool:
        """Register routes/api.php in bootstrap/app.php. Returns True when changed."""
        bootstrap = self.files.read_text(BOOTSTRAP_FILE)
        if bootstrap is None:
            raise PostStartError(f"{BOOTSTRAP_FILE} not found in backend")

        updated = register_api_routes(bootstrap)
        if updated == bootstrap:
            logger.info("api_registration_exists")
            return False

        self.files.write_text(BOOTSTRAP_FILE, updated)
        logger.info("api_registration_added")
        return True

    def auth_package_declared(self) -> bool:
        text = self.files.read_text(COMPOSER_FILE)
        if text is None:
            raise PostStartError(f"{COMPOSER_FILE} not found in backend")
        try:
            manifest = json.loads(text)
        except json.JSONDecodeError as e:
            raise PostStartError(f"Invalid {COMPOSER_FILE}: {e}") from e
        declared = set(manifest.get("require") or {}) | set(manifest.get("require-dev") or {})
        return AUTH_PACKAGE in declared

    def ensure_auth_package(self) -> bool:
        """Require the auth package unless declared. Returns True when installed now."""
        if self.auth_package_declared():
            logger.info(f"auth_package_present package={AUTH_PACKAGE}")
            return False

        result = self.docker.compose_exec(
            self.settings.backend_service,
            ["composer", "require", AUTH_PACKAGE, "--no-interaction"],
        )
        ensure_success(result, f"Installing {AUTH_PACKAGE}")
        logger.info(f"auth_package_installed package={AUTH_PACKAGE}")
        return True

    def run_migrations(self) -> None:
        result = self.docker.compose_exec(
            self.settings.backend_service,
            ["php", "artisan", "migrate", "--force"],
            capture=False,
        )
        ensure_success(result, "Running database migrations")
        logger.info("migrations_done")
