"""
Run context for tracking the provisioning run_id across log records.
"""
import uuid
from contextvars import ContextVar

# Context variable for the current provisioning run
run_id_var: ContextVar[str] = ContextVar("run_id", default="")


def get_run_id() -> str:
    """Get the current run ID."""
    return run_id_var.get()


def set_run_id(run_id: str | None = None) -> str:
    """Set the run ID (generates new one if not provided)."""
    rid = run_id or uuid.uuid4().hex[:12]
    run_id_var.set(rid)
    return rid
