"""Typed models shared across provisioning stages."""
from devstack.schemas.provision import (
    Credentials,
    InstallMode,
    ProvisionReport,
    ServiceCheck,
    ServiceEndpoint,
    StageResult,
    StageStatus,
)

__all__ = [
    "Credentials",
    "InstallMode",
    "ProvisionReport",
    "ServiceCheck",
    "ServiceEndpoint",
    "StageResult",
    "StageStatus",
]
