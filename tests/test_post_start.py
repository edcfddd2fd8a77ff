"""
Tests for the post-start configurator.
"""
import json

import pytest

from devstack.core.errors import CommandError, PostStartError
from devstack.core.files import LocalProjectFiles
from devstack.core.post_start import (
    API_REGISTRATION_LINE,
    API_ROUTES,
    PostStartConfigurator,
    register_api_routes,
)

from tests.conftest import LARAVEL_BOOTSTRAP, make_result, write_laravel_project


@pytest.fixture
def configurator(settings, docker):
    write_laravel_project(settings.backend_path)
    return PostStartConfigurator(settings, docker, LocalProjectFiles(settings.backend_path))


class TestRegisterApiRoutes:
    """Tests for register_api_routes."""

    def test_inserted_after_web_line(self):
        updated = register_api_routes(LARAVEL_BOOTSTRAP)
        lines = updated.splitlines()
        web = next(i for i, line in enumerate(lines) if "web: __DIR__" in line)
        assert lines[web + 1] == f"        {API_REGISTRATION_LINE}"

    def test_applied_twice_appears_once(self):
        once = register_api_routes(LARAVEL_BOOTSTRAP)
        twice = register_api_routes(once)
        assert twice == once
        assert twice.count("api: __DIR__") == 1

    def test_missing_anchor_raises(self):
        with pytest.raises(PostStartError):
            register_api_routes("<?php\nreturn Application::configure()->create();\n")


class TestApiRoutes:
    """Tests for ensure_api_routes."""

    def test_created_when_absent(self, configurator, settings):
        assert configurator.ensure_api_routes() is True
        assert (settings.backend_path / "routes" / "api.php").read_text() == API_ROUTES

    def test_existing_file_byte_identical(self, configurator, settings):
        routes = settings.backend_path / "routes" / "api.php"
        custom = b"<?php\n// hand written\nRoute::get('/ping', fn () => 'pong');\n"
        routes.write_bytes(custom)

        assert configurator.ensure_api_routes() is False
        assert routes.read_bytes() == custom

    def test_route_content(self):
        assert API_ROUTES.startswith("<?php\n")
        assert "use Illuminate\\Http\\Request;" in API_ROUTES
        assert '"message" => "API is working"' in API_ROUTES
        assert '->middleware("auth:sanctum");' in API_ROUTES


class TestApiRegistration:
    """Tests for ensure_api_registration."""

    def test_twice_registers_once(self, configurator, settings):
        assert configurator.ensure_api_registration() is True
        assert configurator.ensure_api_registration() is False
        text = (settings.backend_path / "bootstrap" / "app.php").read_text()
        assert text.count(API_REGISTRATION_LINE) == 1

    def test_missing_bootstrap(self, configurator, settings):
        (settings.backend_path / "bootstrap" / "app.php").unlink()
        with pytest.raises(PostStartError):
            configurator.ensure_api_registration()


class TestAuthPackage:
    """Tests for ensure_auth_package."""

    def test_installs_when_not_declared(self, configurator, fake_runner):
        assert configurator.ensure_auth_package() is True
        cmd = fake_runner.calls[-1].cmd
        assert cmd[:5] == ["docker", "compose", "exec", "-T", "php"]
        assert cmd[5:8] == ["composer", "require", "laravel/sanctum"]

    def test_skips_when_declared(self, configurator, settings, fake_runner):
        composer = settings.backend_path / "composer.json"
        manifest = json.loads(composer.read_text())
        manifest["require"]["laravel/sanctum"] = "^4.0"
        composer.write_text(json.dumps(manifest))

        assert configurator.ensure_auth_package() is False
        assert fake_runner.calls == []

    def test_install_failure_is_fatal(self, configurator, fake_runner):
        fake_runner.handler = lambda cmd, _: make_result(
            cmd, exit_code=1, stderr="Could not resolve host: repo.packagist.org"
        )
        with pytest.raises(CommandError) as exc:
            configurator.ensure_auth_package()
        assert "packagist" in str(exc.value)

    def test_invalid_composer_json(self, configurator, settings):
        (settings.backend_path / "composer.json").write_text("{not json")
        with pytest.raises(PostStartError):
            configurator.ensure_auth_package()


class TestMigrations:
    """Tests for run_migrations."""

    def test_runs_every_time(self, configurator, fake_runner):
        configurator.run_migrations()
        configurator.run_migrations()
        assert len(fake_runner.matching("artisan migrate --force")) == 2

    def test_failure_raises(self, configurator, fake_runner):
        fake_runner.handler = lambda cmd, _: make_result(cmd, exit_code=1)
        with pytest.raises(CommandError):
            configurator.run_migrations()
