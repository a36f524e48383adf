"""
FleetDeploy Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .results import (
    SSHResult,
    DeploymentOutcome,
    BatchSummary,
)
from .inventory import (
    HostTarget,
    Credential,
    DeviceClass,
    Artifact,
    ArtifactSet,
)

__all__ = [
    # Results
    "SSHResult",
    "DeploymentOutcome",
    "BatchSummary",
    # Inventory
    "HostTarget",
    "Credential",
    "DeviceClass",
    "Artifact",
    "ArtifactSet",
]
