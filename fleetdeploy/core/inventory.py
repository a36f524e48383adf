"""Host list and artifact loading"""

from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional

from fleetdeploy.constants import (
    EMBEDDED_INSTALL_DIR,
    EMBEDDED_LOCAL_FILES,
    PACKAGE_GLOB,
    REMOTE_TMP_DIR,
    ROLE_PACKAGE,
    ROLE_SIDE_PACKAGE,
)
from fleetdeploy.exceptions import ConfigurationError
from fleetdeploy.models.inventory import Artifact, ArtifactSet, HostTarget


def parse_hosts(lines: Iterable[str]) -> List[HostTarget]:
    """Build one HostTarget per non-blank line."""
    hosts = []
    for line in lines:
        address = line.strip()
        if address:
            hosts.append(HostTarget(address=address))
    return hosts


def load_hosts(path: Path) -> List[HostTarget]:
    """
    Read the host list file.

    Raises:
        ConfigurationError: If the file cannot be read
    """
    path = Path(path)
    try:
        with open(path, "r") as f:
            return parse_hosts(f)
    except OSError as e:
        raise ConfigurationError(f"Failed to read host list: {path}", context=str(e))


def discover_packages(directory: Path) -> List[Path]:
    """List .deb packages available for installation, sorted by name."""
    return sorted(Path(directory).glob(PACKAGE_GLOB))


def _read_artifact(local_path: Path, remote_path: str) -> Optional[Artifact]:
    if not local_path.is_file():
        return None
    return Artifact(
        local_bytes=local_path.read_bytes(),
        remote_path=remote_path,
        source=str(local_path),
    )


def load_artifacts(
    directory: Path,
    package: Optional[Path] = None,
    side_bundle: Optional[Path] = None,
) -> ArtifactSet:
    """
    Load every local artifact a batch may need.

    Embedded-profile files that are missing are left out of the set so the
    embedded install can report them per host. An explicitly requested
    package or side bundle that is missing is a configuration error.

    Args:
        directory: Directory holding status-updater, cacert.pem and config
        package: Selected .deb package for package-managed hosts
        side_bundle: Optional zip of extra packages installed first

    Returns:
        ArtifactSet shared by all host workers
    """
    directory = Path(directory)
    artifacts: Dict[str, Artifact] = {}

    for role, filename in EMBEDDED_LOCAL_FILES.items():
        artifact = _read_artifact(
            directory / filename, f"{EMBEDDED_INSTALL_DIR}/{filename}"
        )
        if artifact:
            artifacts[role] = artifact

    for role, local_path in ((ROLE_PACKAGE, package), (ROLE_SIDE_PACKAGE, side_bundle)):
        if local_path is None:
            continue
        local_path = Path(local_path)
        artifact = _read_artifact(
            local_path, str(PurePosixPath(REMOTE_TMP_DIR) / local_path.name)
        )
        if artifact is None:
            raise ConfigurationError(f"Artifact not found: {local_path}")
        artifacts[role] = artifact

    return ArtifactSet(artifacts)
