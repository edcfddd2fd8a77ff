"""
Pytest configuration and fixtures.

No test talks to docker: commands go to a FakeRunner that records them,
and project files live under tmp_path.
"""
import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from devstack.core.config import Settings
from devstack.core.docker import Docker
from devstack.core.reporter import Reporter
from devstack.core.runner import CommandResult, CommandRunner

from rich.console import Console


LARAVEL_ENV = """APP_NAME=Laravel
APP_ENV=local
APP_KEY=base64:c2VjcmV0LWtleS1mb3ItdGVzdHM=
APP_DEBUG=true
APP_URL=http://localhost

LOG_CHANNEL=stack

DB_CONNECTION=sqlite
# DB_HOST=127.0.0.1
# DB_PORT=3306
# DB_DATABASE=laravel
# DB_USERNAME=root
# DB_PASSWORD=

SESSION_DRIVER=database

REDIS_CLIENT=phpredis
REDIS_HOST=127.0.0.1
REDIS_PASSWORD=null
REDIS_PORT=6379
"""

LARAVEL_BOOTSTRAP = """<?php

use Illuminate\\Foundation\\Application;
use Illuminate\\Foundation\\Configuration\\Exceptions;
use Illuminate\\Foundation\\Configuration\\Middleware;

return Application::configure(basePath: dirname(__DIR__))
    ->withRouting(
        web: __DIR__.'/../routes/web.php',
        commands: __DIR__.'/../routes/console.php',
        health: '/up',
    )
    ->withMiddleware(function (Middleware $middleware) {
        //
    })
    ->create();
"""

LARAVEL_COMPOSER = {
    "name": "laravel/laravel",
    "require": {"php": "^8.2", "laravel/framework": "^12.0"},
    "require-dev": {"phpunit/phpunit": "^11.0"},
}

VITE_PACKAGE = {
    "name": "frontend",
    "dependencies": {"react": "^19.0.0", "react-dom": "^19.0.0"},
    "devDependencies": {"vite": "^7.0.0", "@vitejs/plugin-react": "^5.0.0"},
}


@dataclass
class RecordedCall:
    cmd: list[str]
    cwd: Optional[Path]
    input_text: Optional[str]
    capture: bool


def make_result(cmd: list[str], exit_code: int = 0, stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(command=cmd, exit_code=exit_code, stdout=stdout, stderr=stderr, duration_ms=1)


class FakeRunner(CommandRunner):
    """Records commands; ``handler`` may return a CommandResult to answer one."""

    def __init__(self, handler: Optional[Callable] = None):
        super().__init__()
        self.calls: list[RecordedCall] = []
        self.handler = handler

    def run(self, cmd, cwd=None, timeout=None, input_text=None, capture=True):
        self.calls.append(RecordedCall(cmd=list(cmd), cwd=cwd, input_text=input_text, capture=capture))
        if self.handler:
            result = self.handler(list(cmd), input_text)
            if result is not None:
                return result
        return make_result(list(cmd))

    def commands(self) -> list[str]:
        return [" ".join(call.cmd) for call in self.calls]

    def matching(self, fragment: str) -> list[RecordedCall]:
        return [call for call in self.calls if fragment in " ".join(call.cmd)]


def write_laravel_project(path: Path, with_views: bool = True) -> None:
    """Lay out the parts of a fresh Laravel project the provisioner touches."""
    (path / "storage" / "logs").mkdir(parents=True, exist_ok=True)
    (path / "bootstrap" / "cache").mkdir(parents=True, exist_ok=True)
    (path / "routes").mkdir(parents=True, exist_ok=True)
    (path / ".env").write_text(LARAVEL_ENV)
    (path / "bootstrap" / "app.php").write_text(LARAVEL_BOOTSTRAP)
    (path / "routes" / "web.php").write_text("<?php\n")
    (path / "composer.json").write_text(json.dumps(LARAVEL_COMPOSER, indent=4))
    if with_views:
        for sub, name in (("views", "welcome.blade.php"), ("js", "app.js"), ("css", "app.css")):
            target = path / "resources" / sub
            target.mkdir(parents=True, exist_ok=True)
            (target / name).write_text("x\n")


def write_vite_project(path: Path) -> None:
    (path / "src").mkdir(parents=True, exist_ok=True)
    (path / "package.json").write_text(json.dumps(VITE_PACKAGE, indent=2))
    (path / "src" / "index.css").write_text(":root { color: black; }\n")
    (path / "index.html").write_text("<div id=\"root\"></div>\n")


@pytest.fixture
def settings(tmp_path):
    """Settings rooted at a temporary project directory."""
    return Settings(project_dir=tmp_path, _env_file=None)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def docker(fake_runner, settings):
    return Docker(fake_runner, settings.project_dir, settings.compose_command)


@pytest.fixture
def reporter():
    """Reporter printing into an in-memory console."""
    return Reporter(Console(record=True, width=120, force_terminal=False))
