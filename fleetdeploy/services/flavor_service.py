"""Host flavor detection."""

from enum import Enum

from fleetdeploy.constants import EMBEDDED_OS_MARKER, OS_RELEASE_PATH
from fleetdeploy.exceptions import CommandError, NetworkError


class HostFlavor(Enum):
    """Installation profile of a connected host."""

    EMBEDDED = "embedded"
    PACKAGE_MANAGED = "package"


async def detect_flavor(session) -> HostFlavor:
    """
    Classify a host from its os-release file.

    Buildroot images are EMBEDDED. Everything else, including a failed
    read, is PACKAGE_MANAGED.
    """
    try:
        result = await session.run(f"cat {OS_RELEASE_PATH}")
    except (NetworkError, CommandError):
        return HostFlavor.PACKAGE_MANAGED

    if result.is_success and EMBEDDED_OS_MARKER in result.stdout:
        return HostFlavor.EMBEDDED
    return HostFlavor.PACKAGE_MANAGED
