"""
Pydantic schemas for provisioning runs and their reports.
"""
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


class InstallMode(str, Enum):
    """Backend installation mode."""
    FULL = "full"
    API = "api"


class StageStatus(str, Enum):
    """Pipeline stage status."""
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


class StageResult(BaseModel):
    """Outcome of a single pipeline stage."""
    name: str
    description: str
    status: StageStatus = StageStatus.PENDING
    details: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    duration_ms: int = 0


class ProvisionReport(BaseModel):
    """Outcome of a complete provisioning run."""
    run_id: str
    mode: InstallMode
    stages: list[StageResult] = Field(default_factory=list)

    @property
    def overall_status(self) -> StageStatus:
        if any(s.status == StageStatus.FAILED for s in self.stages):
            return StageStatus.FAILED
        return StageStatus.DONE

    def stage(self, name: str) -> Optional[StageResult]:
        for s in self.stages:
            if s.name == name:
                return s
        return None


class Credentials(BaseModel):
    """Credentials surfaced to the stack and to the user."""
    db_username: str
    db_password: str
    admin_email: str
    admin_password: str
    is_default: bool = False


class ServiceEndpoint(BaseModel):
    """An address printed in the final summary."""
    label: str
    address: str


class ServiceCheck(BaseModel):
    """Readiness probe for one service of the stack."""
    name: str
    kind: Literal["container", "tcp", "http"]
    host: str = "localhost"
    port: Optional[int] = None
    path: str = "/"

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}{self.path}"
