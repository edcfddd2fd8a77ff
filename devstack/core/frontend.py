"""
Frontend Provisioner - Vite + React project with Tailwind CSS.

Dependencies are only installed when package.json does not declare them
yet; a failing install is an error, never an "already installed" signal.
"""
import json
import logging
from pathlib import Path

from devstack.core.config import Settings
from devstack.core.docker import Docker
from devstack.core.envfile import EnvFile
from devstack.core.errors import ProvisioningError
from devstack.core.files import ProjectFiles
from devstack.core.runner import ensure_success

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

VITE_TEMPLATE = "react"

DEV_PACKAGES = ("tailwindcss@^3", "postcss", "autoprefixer")
RUNTIME_PACKAGES = ("react-router-dom", "axios", "@tanstack/react-query")

ENV_FILE = ".env"
TAILWIND_CONFIG_FILE = "tailwind.config.js"
POSTCSS_CONFIG_FILE = "postcss.config.js"
STYLESHEET_FILE = "src/index.css"

PRIMARY_PALETTE = {
    50: "#eff6ff",
    100: "#dbeafe",
    200: "#bfdbfe",
    300: "#93c5fd",
    400: "#60a5fa",
    500: "#3b82f6",
    600: "#2563eb",
    700: "#1d4ed8",
    800: "#1e40af",
    900: "#1e3a8a",
}


def _render_tailwind_config() -> str:
    palette = "\n".join(
        f"          {shade}: '{color}'," for shade, color in PRIMARY_PALETTE.items()
    )
    return f"""/** @type {{import('tailwindcss').Config}} */
export default {{
  content: [
    "./index.html",
    "./src/**/*.{{js,ts,jsx,tsx}}",
  ],
  theme: {{
    extend: {{
      colors: {{
        primary: {{
{palette}
        }},
      }},
    }},
  }},
  plugins: [],
}}
"""


TAILWIND_CONFIG = _render_tailwind_config()

POSTCSS_CONFIG = """export default {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
}
"""

STYLESHEET = """@tailwind base;
@tailwind components;
@tailwind utilities;
"""


def package_name(spec: str) -> str:
    """Strip the version range from an npm install spec (scoped names keep their @)."""
    at = spec.rfind("@")
    return spec[:at] if at > 0 else spec


class FrontendProvisioner:
    """Creates, installs and configures the frontend project."""

    def __init__(self, settings: Settings, docker: Docker, files: ProjectFiles):
        self.settings = settings
        self.docker = docker
        self.files = files

    @property
    def path(self) -> Path:
        return self.settings.frontend_path

    def exists(self) -> bool:
        return self.path.is_dir()

    def scaffold(self) -> bool:
        """
        Create the Vite project unless its directory already exists.

        Returns:
            True if the project was created, False if it was left untouched
        """
        if self.exists():
            logger.info(f"frontend_scaffold_skipped path={self.path}")
            return False

        result = self.docker.run_ephemeral(
            self.settings.node_image,
            self.settings.project_dir,
            [
                "npm", "create", "vite@latest", self.settings.frontend_dir,
                "--", "--template", VITE_TEMPLATE,
            ],
            capture=False,
        )
        ensure_success(result, "Creating frontend project")
        logger.info("frontend_scaffold_done")
        return True

    # -------------------------------------------------------------------------
    # Dependencies
    # -------------------------------------------------------------------------

    def declared_packages(self) -> set[str]:
        text = self.files.read_text("package.json")
        if text is None:
            raise ProvisioningError(f"{self.settings.frontend_dir}/package.json not found")
        try:
            manifest = json.loads(text)
        except json.JSONDecodeError as e:
            raise ProvisioningError(f"Invalid package.json: {e}") from e
        declared = set(manifest.get("dependencies") or {})
        declared |= set(manifest.get("devDependencies") or {})
        return declared

    def missing_packages(self) -> tuple[list[str], list[str]]:
        """Return (dev, runtime) install specs not yet declared in package.json."""
        declared = self.declared_packages()
        dev = [spec for spec in DEV_PACKAGES if package_name(spec) not in declared]
        runtime = [spec for spec in RUNTIME_PACKAGES if package_name(spec) not in declared]
        return dev, runtime

    def _npm(self, args: list[str], action: str) -> None:
        result = self.docker.run_ephemeral(
            self.settings.node_image, self.path, args, capture=False
        )
        ensure_success(result, action)

    def install_dependencies(self) -> list[str]:
        """
        Install what is missing.

        Returns:
            Human-readable list of the actions performed (empty when nothing was needed)
        """
        actions = []
        dev, runtime = self.missing_packages()

        if not self.files.exists("node_modules"):
            self._npm(["npm", "install"], "Installing npm packages")
            actions.append("installed npm packages")

        if dev:
            self._npm(["npm", "install", "-D", *dev], "Installing dev dependencies")
            actions.append(f"added dev dependencies: {', '.join(dev)}")

        if runtime:
            self._npm(["npm", "install", *runtime], "Installing dependencies")
            actions.append(f"added dependencies: {', '.join(runtime)}")

        if not self.files.exists(TAILWIND_CONFIG_FILE):
            self._npm(["npx", "tailwindcss", "init", "-p"], "Initializing Tailwind CSS")
            actions.append("initialized Tailwind CSS")

        logger.info(f"frontend_dependencies_done actions={len(actions)}")
        return actions

    # -------------------------------------------------------------------------
    # Configuration files
    # -------------------------------------------------------------------------

    def write_config(self) -> list[str]:
        """
        Write the env file, Tailwind/PostCSS configs and root stylesheet.

        Returns:
            Paths that were (re)written
        """
        written = []

        env = EnvFile.parse(self.files.read_text(ENV_FILE) or "")
        env.set("VITE_API_URL", self.settings.api_url)
        if self.files.write_if_changed(ENV_FILE, env.render()):
            written.append(ENV_FILE)

        if self.files.write_if_changed(TAILWIND_CONFIG_FILE, TAILWIND_CONFIG):
            written.append(TAILWIND_CONFIG_FILE)

        if not self.files.exists(POSTCSS_CONFIG_FILE):
            self.files.write_text(POSTCSS_CONFIG_FILE, POSTCSS_CONFIG)
            written.append(POSTCSS_CONFIG_FILE)

        if self.files.write_if_changed(STYLESHEET_FILE, STYLESHEET):
            written.append(STYLESHEET_FILE)

        logger.info(f"frontend_config_done written={len(written)}")
        return written
