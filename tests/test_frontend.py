"""
Tests for the frontend provisioner.
"""
import json

import pytest

from devstack.core.errors import CommandError, ProvisioningError
from devstack.core.files import LocalProjectFiles
from devstack.core.frontend import (
    PRIMARY_PALETTE,
    STYLESHEET,
    TAILWIND_CONFIG,
    FrontendProvisioner,
    package_name,
)

from tests.conftest import VITE_PACKAGE, make_result, write_vite_project


@pytest.fixture
def frontend(settings, docker):
    return FrontendProvisioner(settings, docker, LocalProjectFiles(settings.frontend_path))


def _declare_all(path):
    manifest = dict(VITE_PACKAGE)
    manifest["dependencies"] = {
        **VITE_PACKAGE["dependencies"],
        "react-router-dom": "^7.0.0",
        "axios": "^1.7.0",
        "@tanstack/react-query": "^5.0.0",
    }
    manifest["devDependencies"] = {
        **VITE_PACKAGE["devDependencies"],
        "tailwindcss": "^3.4.0",
        "postcss": "^8.4.0",
        "autoprefixer": "^10.4.0",
    }
    (path / "package.json").write_text(json.dumps(manifest))
    (path / "node_modules").mkdir()
    (path / "tailwind.config.js").write_text(TAILWIND_CONFIG)


class TestPackageName:
    """Tests for package_name."""

    def test_plain(self):
        assert package_name("axios") == "axios"

    def test_versioned(self):
        assert package_name("tailwindcss@^3") == "tailwindcss"

    def test_scoped(self):
        assert package_name("@tanstack/react-query") == "@tanstack/react-query"
        assert package_name("@tanstack/react-query@5") == "@tanstack/react-query"


class TestScaffold:
    """Tests for FrontendProvisioner.scaffold."""

    def test_creates_vite_project(self, frontend, fake_runner):
        assert frontend.scaffold() is True
        cmd = fake_runner.calls[0].cmd
        assert "node:20-alpine" in cmd
        assert cmd[-7:] == ["npm", "create", "vite@latest", "frontend", "--", "--template", "react"]

    def test_existing_directory_untouched(self, frontend, settings, fake_runner):
        write_vite_project(settings.frontend_path)
        assert frontend.scaffold() is False
        assert fake_runner.calls == []


class TestDependencies:
    """Tests for FrontendProvisioner.install_dependencies."""

    def test_fresh_project_installs_everything(self, frontend, settings, fake_runner):
        write_vite_project(settings.frontend_path)

        actions = frontend.install_dependencies()

        commands = fake_runner.commands()
        assert any(c.endswith("npm install") for c in commands)
        assert any(c.endswith("npm install -D tailwindcss@^3 postcss autoprefixer") for c in commands)
        assert any(c.endswith("npm install react-router-dom axios @tanstack/react-query") for c in commands)
        assert any(c.endswith("npx tailwindcss init -p") for c in commands)
        assert len(actions) == 4

    def test_declared_packages_not_reinstalled(self, frontend, settings, fake_runner):
        write_vite_project(settings.frontend_path)
        _declare_all(settings.frontend_path)

        assert frontend.install_dependencies() == []
        assert fake_runner.calls == []

    def test_only_missing_packages_installed(self, frontend, settings, fake_runner):
        write_vite_project(settings.frontend_path)
        _declare_all(settings.frontend_path)
        manifest = json.loads((settings.frontend_path / "package.json").read_text())
        del manifest["dependencies"]["axios"]
        (settings.frontend_path / "package.json").write_text(json.dumps(manifest))

        frontend.install_dependencies()

        assert fake_runner.commands()[-1].endswith("npm install axios")
        assert len(fake_runner.calls) == 1

    def test_install_failure_is_fatal(self, frontend, settings, fake_runner):
        write_vite_project(settings.frontend_path)
        fake_runner.handler = lambda cmd, _: make_result(cmd, exit_code=1, stderr="ERR! registry")
        with pytest.raises(CommandError) as exc:
            frontend.install_dependencies()
        assert "ERR! registry" in str(exc.value)

    def test_missing_package_json(self, frontend, settings):
        settings.frontend_path.mkdir()
        with pytest.raises(ProvisioningError):
            frontend.install_dependencies()


class TestConfig:
    """Tests for FrontendProvisioner.write_config."""

    def test_writes_config_files(self, frontend, settings):
        write_vite_project(settings.frontend_path)

        written = frontend.write_config()

        root = settings.frontend_path
        assert (root / ".env").read_text() == "VITE_API_URL=http://localhost:8888/api/v1\n"
        assert (root / "src" / "index.css").read_text() == STYLESHEET
        assert (root / "tailwind.config.js").read_text() == TAILWIND_CONFIG
        assert (root / "postcss.config.js").exists()
        assert set(written) == {".env", "tailwind.config.js", "postcss.config.js", "src/index.css"}

    def test_palette_in_tailwind_config(self):
        for shade, color in PRIMARY_PALETTE.items():
            assert f"{shade}: '{color}'," in TAILWIND_CONFIG
        assert '"./src/**/*.{js,ts,jsx,tsx}"' in TAILWIND_CONFIG
        assert "export default {" in TAILWIND_CONFIG

    def test_stylesheet_directives(self):
        assert STYLESHEET.splitlines() == [
            "@tailwind base;",
            "@tailwind components;",
            "@tailwind utilities;",
        ]

    def test_second_run_writes_nothing(self, frontend, settings):
        write_vite_project(settings.frontend_path)
        frontend.write_config()
        assert frontend.write_config() == []

    def test_env_keeps_other_keys(self, frontend, settings):
        write_vite_project(settings.frontend_path)
        (settings.frontend_path / ".env").write_text("VITE_FLAG=1\nVITE_API_URL=http://old\n")

        frontend.write_config()

        assert (settings.frontend_path / ".env").read_text() == (
            "VITE_FLAG=1\nVITE_API_URL=http://localhost:8888/api/v1\n"
        )
