"""
Provisioning Pipeline - runs the stages in order and records their outcome.

Stages:
1. backend          - Laravel project, permissions, .env merge
2. frontend         - Vite project
3. frontend-deps    - missing npm packages
4. frontend-config  - .env, Tailwind config, stylesheet
5. build            - docker compose build
6. start            - docker compose up -d + readiness polling
7. post-start       - api routes, auth package, migrations

The first failing stage stops the run; later stages are marked skipped
and the error propagates to the caller.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from devstack.core.backend import BackendProvisioner
from devstack.core.config import Settings
from devstack.core.credentials import (
    compose_files_missing_substitution,
    load_or_create_credentials,
    write_compose_env,
)
from devstack.core.docker import Docker
from devstack.core.errors import DevstackError
from devstack.core.files import EphemeralContainerFiles, LocalProjectFiles, ProjectFiles, ServiceContainerFiles
from devstack.core.frontend import FrontendProvisioner
from devstack.core.post_start import PostStartConfigurator
from devstack.core.reporter import Reporter
from devstack.core.run_context import get_run_id, set_run_id
from devstack.core.runner import CommandRunner
from devstack.core.stack import StackController
from devstack.schemas import Credentials, InstallMode, ProvisionReport, StageResult, StageStatus

logger = logging.getLogger(__name__)

STAGES = [
    ("backend", "Creating Laravel Backend"),
    ("frontend", "Creating React Frontend"),
    ("frontend-deps", "Installing Frontend Dependencies"),
    ("frontend-config", "Configuring Frontend"),
    ("build", "Building Docker Images"),
    ("start", "Starting Docker Containers"),
    ("post-start", "Configuring Backend Application"),
]


class ProvisioningPipeline:
    """Sequential provisioning of the development stack."""

    def __init__(
        self,
        settings: Settings,
        reporter: Reporter,
        backend: BackendProvisioner,
        frontend: FrontendProvisioner,
        stack: StackController,
        post_start: PostStartConfigurator,
        root_files: ProjectFiles,
    ):
        self.settings = settings
        self.reporter = reporter
        self.backend = backend
        self.frontend = frontend
        self.stack = stack
        self.post_start = post_start
        self.root_files = root_files
        self.credentials: Optional[Credentials] = None
        self.report: Optional[ProvisionReport] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        reporter: Reporter,
        runner: Optional[CommandRunner] = None,
    ) -> "ProvisioningPipeline":
        runner = runner or CommandRunner(default_timeout=settings.command_timeout)
        docker = Docker(runner, settings.project_dir, settings.compose_command)
        return cls(
            settings=settings,
            reporter=reporter,
            backend=BackendProvisioner(
                settings, docker,
                EphemeralContainerFiles(settings.backend_path, docker, settings.helper_image),
            ),
            frontend=FrontendProvisioner(
                settings, docker,
                EphemeralContainerFiles(settings.frontend_path, docker, settings.helper_image),
            ),
            stack=StackController(settings, docker),
            post_start=PostStartConfigurator(
                settings, docker,
                ServiceContainerFiles(docker, settings.backend_service, settings.backend_container_path),
            ),
            root_files=LocalProjectFiles(settings.project_dir),
        )

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def run(self, mode: InstallMode) -> ProvisionReport:
        run_id = get_run_id() or set_run_id()
        report = ProvisionReport(
            run_id=run_id,
            mode=mode,
            stages=[StageResult(name=name, description=desc) for name, desc in STAGES],
        )
        self.report = report
        handlers: dict[str, Callable[[StageResult], StageStatus]] = {
            "backend": lambda stage: self._backend_stage(stage, mode),
            "frontend": self._frontend_stage,
            "frontend-deps": self._frontend_deps_stage,
            "frontend-config": self._frontend_config_stage,
            "build": self._build_stage,
            "start": self._start_stage,
            "post-start": self._post_start_stage,
        }

        logger.info(f"pipeline_start mode={mode.value}")
        for number, stage in enumerate(report.stages, start=1):
            self.reporter.step(number, stage.description)
            stage.status = StageStatus.RUNNING
            start = datetime.now(timezone.utc)
            try:
                stage.status = handlers[stage.name](stage)
            except DevstackError as e:
                stage.status = StageStatus.FAILED
                stage.error = e.message
                logger.error(f"stage_failed stage={stage.name}", extra={"stage": stage.name})
                for later in report.stages[number:]:
                    later.status = StageStatus.SKIPPED
                    later.error = "Skipped due to previous failure"
                raise
            finally:
                stage.duration_ms = int((datetime.now(timezone.utc) - start).total_seconds() * 1000)
            logger.info(
                f"stage_done stage={stage.name} status={stage.status.value}",
                extra={"stage": stage.name, "duration_ms": stage.duration_ms},
            )

        logger.info("pipeline_done")
        return report

    def _note(self, stage: StageResult, message: str) -> None:
        stage.details.append(message)
        self.reporter.info(message)

    def _skip(self, stage: StageResult, message: str) -> None:
        stage.details.append(message)
        self.reporter.skipped(message)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _backend_stage(self, stage: StageResult, mode: InstallMode) -> StageStatus:
        self.credentials = load_or_create_credentials(self.settings)
        changed = False
        if self.backend.exists():
            self._skip(stage, "Backend directory already exists")
        else:
            label = "API-only" if mode == InstallMode.API else "Full-stack"
            self._note(stage, f"Creating {label} Laravel project...")
            self.backend.scaffold(mode)
            if mode == InstallMode.API:
                self._note(stage, "Configured for API-only mode")
            self.reporter.success("Backend project created")
            changed = True

        if not self.backend.exists():
            return StageStatus.DONE if changed else StageStatus.SKIPPED

        self._note(stage, "Fixing backend directory permissions...")
        failures = self.backend.normalize_permissions()
        if failures:
            self._skip(stage, f"Could not change permissions of {failures} paths")

        if write_compose_env(self.root_files, self.credentials):
            self._note(stage, "Wrote stack credentials to .env")
            changed = True
        if not self.credentials.is_default:
            for name in compose_files_missing_substitution(self.root_files):
                logger.warning(f"compose_password_hardcoded path={name}")
                self._skip(
                    stage,
                    f"{name} does not use ${{DB_PASSWORD}}; the database may reject the "
                    f"generated password (set DEVSTACK_USE_DEFAULT_CREDENTIALS=true or substitute it)",
                )

        env_changed = self.backend.configure_env(self.credentials)
        if env_changed is None:
            self._skip(stage, "backend/.env not found, configuration skipped")
        elif env_changed:
            self._note(stage, "Configured backend .env for PostgreSQL")
            changed = True
        else:
            self._skip(stage, "Backend .env already configured")

        self.reporter.success("Backend configuration completed")
        return StageStatus.DONE if changed else StageStatus.SKIPPED

    def _frontend_stage(self, stage: StageResult) -> StageStatus:
        if self.frontend.exists():
            self._skip(stage, "Frontend directory already exists")
            return StageStatus.SKIPPED
        self._note(stage, "Creating Vite React project...")
        self.frontend.scaffold()
        self.reporter.success("Frontend project created")
        return StageStatus.DONE

    def _frontend_deps_stage(self, stage: StageResult) -> StageStatus:
        if not self.frontend.exists():
            self._skip(stage, "Frontend directory not found")
            return StageStatus.SKIPPED
        actions = self.frontend.install_dependencies()
        if not actions:
            self._skip(stage, "Frontend dependencies already installed")
            return StageStatus.SKIPPED
        for action in actions:
            self._note(stage, action)
        self.reporter.success("Frontend dependencies installed")
        return StageStatus.DONE

    def _frontend_config_stage(self, stage: StageResult) -> StageStatus:
        if not self.frontend.exists():
            self._skip(stage, "Frontend directory not found")
            return StageStatus.SKIPPED
        written = self.frontend.write_config()
        if not written:
            self._skip(stage, "Frontend configuration already up to date")
            return StageStatus.SKIPPED
        for path in written:
            self._note(stage, f"Wrote {path}")
        self.reporter.success("Frontend configuration completed")
        return StageStatus.DONE

    def _build_stage(self, stage: StageResult) -> StageStatus:
        self.stack.build()
        return StageStatus.DONE

    def _start_stage(self, stage: StageResult) -> StageStatus:
        self.stack.start()
        self._note(stage, "Waiting for services to be ready...")
        ready = self.stack.wait_until_ready()
        self.reporter.success(f"Services ready: {', '.join(ready)}")
        return StageStatus.DONE

    def _post_start_stage(self, stage: StageResult) -> StageStatus:
        if self.post_start.ensure_api_routes():
            self._note(stage, "Created API routes file")
        else:
            self._skip(stage, "API routes file already exists, skipping...")

        if self.post_start.ensure_api_registration():
            self._note(stage, "Configured API routes in bootstrap")
        else:
            self._skip(stage, "API routes already registered in bootstrap")
        self.reporter.success("API routes configured")

        if self.post_start.ensure_auth_package():
            self._note(stage, "Installed Laravel Sanctum")
        else:
            self._skip(stage, "Sanctum already installed")
        self.reporter.success("Sanctum configured")

        self._note(stage, "Running database migrations...")
        self.post_start.run_migrations()
        self.reporter.success("Migrations completed")
        return StageStatus.DONE
