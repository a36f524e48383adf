"""
FleetDeploy Services Layer

Remote transport, transfer, detection, install and batch orchestration.
"""

from .ssh_service import SSHTransport, RemoteSession
from .transfer_service import ArtifactTransfer
from .flavor_service import HostFlavor, detect_flavor
from .install_service import (
    InstallPhase,
    InstallReport,
    InstallStrategy,
    EmbeddedInstall,
    PackageInstall,
    Elevation,
    build_strategies,
)
from .worker_service import HostWorker
from .orchestrator_service import Orchestrator, ResultCollector, run_batch

__all__ = [
    "SSHTransport",
    "RemoteSession",
    "ArtifactTransfer",
    "HostFlavor",
    "detect_flavor",
    "InstallPhase",
    "InstallReport",
    "InstallStrategy",
    "EmbeddedInstall",
    "PackageInstall",
    "Elevation",
    "build_strategies",
    "HostWorker",
    "Orchestrator",
    "ResultCollector",
    "run_batch",
]
