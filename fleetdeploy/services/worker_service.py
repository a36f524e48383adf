"""Per-host deployment workflow."""

from typing import Dict, Optional, Sequence

from fleetdeploy.constants import REASON_NO_CREDENTIAL
from fleetdeploy.exceptions import AuthError, FleetDeployError, NetworkError
from fleetdeploy.logger import DeployLogger
from fleetdeploy.models.inventory import ArtifactSet, Credential, HostTarget
from fleetdeploy.models.results import DeploymentOutcome
from fleetdeploy.services.flavor_service import HostFlavor, detect_flavor
from fleetdeploy.services.install_service import InstallStrategy


class HostWorker:
    """
    Drives one host through authentication, detection, install and
    verification, producing exactly one DeploymentOutcome.

    No exception leaves `run`; every failure becomes a failed outcome.
    """

    def __init__(
        self,
        transport,
        strategies: Dict[HostFlavor, InstallStrategy],
        logger: Optional[DeployLogger] = None,
    ):
        """
        Initialize host worker.

        Args:
            transport: Object with `async connect(host, credential)` returning a session
            strategies: Install strategy per host flavor
            logger: Optional logger for per-host progress
        """
        self.transport = transport
        self.strategies = strategies
        self.logger = logger

    def _log(self, host: str, message: str, level: str = "INFO") -> None:
        if self.logger:
            self.logger.host(host, message, level)

    async def authenticate(self, host: str, credentials: Sequence[Credential]):
        """
        Return a session for the first credential the host accepts.

        Credentials after the accepted one are never tried. Returns None when
        every credential failed.
        """
        for credential in credentials:
            try:
                session = await self.transport.connect(host, credential)
            except (AuthError, NetworkError) as e:
                self._log(
                    host,
                    f"Failed to connect with user {credential.username}: {e.message}",
                    "WARNING",
                )
                continue

            self._log(host, f"Connected as {credential.username}")
            return session

        return None

    async def run(
        self,
        host: HostTarget,
        credentials: Sequence[Credential],
        artifacts: ArtifactSet,
    ) -> DeploymentOutcome:
        """
        Deploy to one host.

        Args:
            host: Target host
            credentials: Credentials to try, in order
            artifacts: Shared read-only artifacts

        Returns:
            DeploymentOutcome for this host
        """
        address = host.address
        self._log(address, "Processing host")

        session = None
        try:
            session = await self.authenticate(address, credentials)
            if session is None:
                self._log(address, "Failed to connect with any user", "ERROR")
                return DeploymentOutcome.failure(address, REASON_NO_CREDENTIAL)

            flavor = await detect_flavor(session)
            self._log(address, f"Detected {flavor.value} profile")

            report = await self.strategies[flavor].install(session, artifacts)
            if report.is_done:
                self._log(address, "Successfully installed")
                return DeploymentOutcome.success(address)

            failed_phase = report.failed_phase.value if report.failed_phase else "precondition"
            message = f"Failed to install ({failed_phase}): {report.reason}"
            if report.detail:
                message += f" [{report.detail}]"
            self._log(address, message, "ERROR")
            return DeploymentOutcome.failure(address, report.reason)

        except FleetDeployError as e:
            self._log(address, f"Failed to install: {e.message}", "ERROR")
            return DeploymentOutcome.failure(address, e.message)
        except Exception as e:
            error_type = type(e).__name__
            self._log(address, f"Unexpected {error_type}: {e}", "ERROR")
            return DeploymentOutcome.failure(address, f"{error_type}: {e}")
        finally:
            if session is not None:
                await session.close()
