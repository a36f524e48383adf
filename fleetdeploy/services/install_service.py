"""
Installation strategies for the two host flavors.

Both strategies walk the same phases: TRANSFERRING -> CONFIGURING ->
STARTING -> VERIFYING, ending in DONE or FAILED. The first error ends the
install; a host is never partially successful.
"""

import random
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Optional, Dict

from jinja2 import Template

from fleetdeploy.constants import (
    DEFAULT_SERVICE_NAME,
    ELEVATION_NONE,
    ELEVATION_NOPASSWD,
    ELEVATION_STDIN,
    EMBEDDED_INSTALL_DIR,
    EMBEDDED_ROLES,
    INIT_SCRIPT_DIR,
    REASON_VERIFICATION_FAILED,
    ROLE_MAIN_BINARY,
    ROLE_PACKAGE,
    ROLE_SIDE_PACKAGE,
    SSH_COMMAND_TIMEOUT,
    STARTUP_JITTER_MAX,
)
from fleetdeploy.exceptions import CommandError, FleetDeployError, PreconditionError
from fleetdeploy.logger import DeployLogger
from fleetdeploy.models.inventory import ArtifactSet
from fleetdeploy.models.results import SSHResult
from fleetdeploy.services.flavor_service import HostFlavor
from fleetdeploy.services.transfer_service import ArtifactTransfer

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


class InstallPhase(Enum):
    """Phase of a host install."""

    TRANSFERRING = "transferring"
    CONFIGURING = "configuring"
    STARTING = "starting"
    VERIFYING = "verifying"
    DONE = "done"
    FAILED = "failed"


@dataclass
class InstallReport:
    """Terminal state of an install."""

    phase: InstallPhase
    failed_phase: Optional[InstallPhase] = None
    reason: Optional[str] = None
    detail: Optional[str] = None

    @property
    def is_done(self) -> bool:
        return self.phase == InstallPhase.DONE

    @classmethod
    def done(cls) -> "InstallReport":
        return cls(phase=InstallPhase.DONE)

    @classmethod
    def failed(
        cls,
        reason: str,
        failed_phase: Optional[InstallPhase] = None,
        detail: Optional[str] = None,
    ) -> "InstallReport":
        return cls(
            phase=InstallPhase.FAILED,
            failed_phase=failed_phase,
            reason=reason,
            detail=detail,
        )


@dataclass
class Elevation:
    """
    Runs one privileged command without a terminal.

    In stdin mode the secret is written to sudo's stdin so it never shows
    up in the remote process list or in logged command text.
    """

    mode: str = ELEVATION_STDIN
    secret: str = field(default="", repr=False)

    @property
    def prefix(self) -> str:
        if self.mode == ELEVATION_STDIN:
            return "sudo -S -p ''"
        if self.mode == ELEVATION_NOPASSWD:
            return "sudo -n"
        return ""

    @property
    def input(self) -> Optional[bytes]:
        if self.mode == ELEVATION_STDIN:
            return f"{self.secret}\n".encode("utf-8")
        return None

    def command(self, command: str) -> str:
        if self.mode == ELEVATION_NONE:
            return command
        return f"{self.prefix} {command}"


class InstallStrategy(ABC):
    """Base class for an install flow that ends with the service running."""

    flavor: HostFlavor

    def __init__(
        self,
        transfer: Optional[ArtifactTransfer] = None,
        service_name: str = DEFAULT_SERVICE_NAME,
        command_timeout: float = SSH_COMMAND_TIMEOUT,
        logger: Optional[DeployLogger] = None,
    ):
        self.transfer = transfer or ArtifactTransfer(logger=logger)
        self.service_name = service_name
        self.command_timeout = command_timeout
        self.logger = logger

    @abstractmethod
    def required_roles(self) -> list[str]:
        """Artifact roles this strategy needs."""
        pass

    @abstractmethod
    async def transfer_files(self, session, artifacts: ArtifactSet) -> None:
        pass

    @abstractmethod
    async def configure(self, session, artifacts: ArtifactSet) -> None:
        pass

    @abstractmethod
    async def start(self, session, artifacts: ArtifactSet) -> None:
        pass

    @abstractmethod
    async def verify(self, session, artifacts: ArtifactSet) -> None:
        pass

    def check_preconditions(self, artifacts: ArtifactSet) -> None:
        """
        Raises:
            PreconditionError: If a required artifact was not loaded
        """
        missing = artifacts.missing(self.required_roles())
        if missing:
            raise PreconditionError(missing)

    async def install(self, session, artifacts: ArtifactSet) -> InstallReport:
        """Drive the session's host through every phase in order."""
        try:
            self.check_preconditions(artifacts)
        except PreconditionError as e:
            return InstallReport.failed(e.message)

        phases = [
            (InstallPhase.TRANSFERRING, self.transfer_files),
            (InstallPhase.CONFIGURING, self.configure),
            (InstallPhase.STARTING, self.start),
            (InstallPhase.VERIFYING, self.verify),
        ]
        for phase, step in phases:
            if self.logger:
                self.logger.host(session.host, f"{self.flavor.value}: {phase.value}", "DEBUG")
            try:
                await step(session, artifacts)
            except FleetDeployError as e:
                return InstallReport.failed(e.message, failed_phase=phase, detail=e.context)

        return InstallReport.done()

    async def check(
        self,
        session,
        command: str,
        error: str,
        input: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> SSHResult:
        """Run a command and raise CommandError if it exits non-zero."""
        result = await session.run(command, input=input, timeout=timeout)
        if result.is_failure:
            raise CommandError(error, exit_status=result.returncode, stderr=result.stderr)
        return result


class EmbeddedInstall(InstallStrategy):
    """
    Install on devices without a package manager.

    Files are placed directly under the install dir and a generated SysV
    init script supervises the binary. The script sleeps a random delay
    before starting so a fleet-wide reboot does not start every instance
    at once.
    """

    flavor = HostFlavor.EMBEDDED

    def __init__(self, *args, rng: Optional[random.Random] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.rng = rng or random.Random()

    @property
    def init_script_path(self) -> str:
        return f"{INIT_SCRIPT_DIR}/{self.service_name}"

    def required_roles(self) -> list[str]:
        return list(EMBEDDED_ROLES)

    def render_init_script(self, artifacts: ArtifactSet, startup_delay: int) -> str:
        binary = artifacts.get(ROLE_MAIN_BINARY)
        binary_path = PurePosixPath(binary.remote_path) if binary else None
        template = Template((TEMPLATES_DIR / "init_script.sh.j2").read_text())
        return template.render(
            service_name=self.service_name,
            install_dir=str(binary_path.parent) if binary_path else EMBEDDED_INSTALL_DIR,
            binary_name=binary_path.name if binary_path else self.service_name,
            startup_delay=startup_delay,
        )

    async def transfer_files(self, session, artifacts: ArtifactSet) -> None:
        for role in EMBEDDED_ROLES:
            remote_dir = artifacts[role].remote_dir
            await self.check(
                session,
                f"mkdir -p {shlex.quote(remote_dir)}",
                f"failed to create directory {remote_dir}",
            )

        for role in EMBEDDED_ROLES:
            mode = 0o755 if role == ROLE_MAIN_BINARY else 0o644
            await self.transfer.push_artifact(session, artifacts[role], mode=mode)

    async def configure(self, session, artifacts: ArtifactSet) -> None:
        startup_delay = self.rng.randrange(STARTUP_JITTER_MAX)
        if self.logger:
            self.logger.host(session.host, f"Startup delay: {startup_delay}s", "DEBUG")

        script = self.render_init_script(artifacts, startup_delay)
        await self.transfer.push(session, script.encode("utf-8"), self.init_script_path)
        await self.check(
            session,
            f"chmod +x {self.init_script_path}",
            "failed to make init script executable",
        )
        await self.check(
            session,
            f"update-rc.d {self.service_name} defaults",
            "failed to enable service",
        )

    async def start(self, session, artifacts: ArtifactSet) -> None:
        # The init script sleeps the startup delay before returning
        await self.check(
            session,
            f"{self.init_script_path} start",
            "failed to start service",
            timeout=STARTUP_JITTER_MAX + self.command_timeout,
        )

    async def verify(self, session, artifacts: ArtifactSet) -> None:
        binary = artifacts[ROLE_MAIN_BINARY].basename
        result = await session.run(f"ps aux | grep {shlex.quote(binary)} | grep -v grep")
        if result.is_failure or not result.stdout.strip():
            raise CommandError(REASON_VERIFICATION_FAILED, stderr=result.stderr)


class PackageInstall(InstallStrategy):
    """
    Install on devices with dpkg and systemd.

    An optional side bundle (zip of .deb files) is installed first, since
    the main package may depend on it.
    """

    flavor = HostFlavor.PACKAGE_MANAGED

    def __init__(
        self,
        *args,
        install_side_bundle: bool = False,
        elevation_mode: str = ELEVATION_STDIN,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.install_side_bundle = install_side_bundle
        self.elevation_mode = elevation_mode

    def required_roles(self) -> list[str]:
        if self.install_side_bundle:
            return [ROLE_SIDE_PACKAGE, ROLE_PACKAGE]
        return [ROLE_PACKAGE]

    def elevation_for(self, session) -> Elevation:
        return Elevation(mode=self.elevation_mode, secret=session.credential.secret)

    async def privileged(self, session, command: str, error: str) -> SSHResult:
        elevation = self.elevation_for(session)
        return await self.check(
            session, elevation.command(command), error, input=elevation.input
        )

    async def transfer_files(self, session, artifacts: ArtifactSet) -> None:
        if self.install_side_bundle:
            await self._install_side_bundle(session, artifacts)

        await self.transfer.push_artifact(session, artifacts[ROLE_PACKAGE])

    async def _install_side_bundle(self, session, artifacts: ArtifactSet) -> None:
        bundle = artifacts[ROLE_SIDE_PACKAGE]
        await self.transfer.push_artifact(session, bundle)

        remote_zip = shlex.quote(bundle.remote_path)
        unpack_dir = shlex.quote(str(PurePosixPath(bundle.remote_path).with_suffix("")))
        elevation = self.elevation_for(session)
        command = (
            f"unzip -o {remote_zip} -d {unpack_dir} && "
            f"{elevation.command(f'dpkg -i {unpack_dir}/*.deb')} && "
            f"rm -rf {unpack_dir} {remote_zip}"
        )
        await self.check(
            session,
            command,
            f"failed to install {bundle.basename}",
            input=elevation.input,
        )

    async def configure(self, session, artifacts: ArtifactSet) -> None:
        package = artifacts[ROLE_PACKAGE]
        await self.privileged(
            session,
            f"dpkg -i {shlex.quote(package.remote_path)}",
            f"failed to install {package.basename}",
        )

    async def start(self, session, artifacts: ArtifactSet) -> None:
        await self.privileged(
            session,
            f"systemctl start {shlex.quote(self.service_name)}",
            "failed to start service",
        )

    async def verify(self, session, artifacts: ArtifactSet) -> None:
        elevation = self.elevation_for(session)
        result = await session.run(
            elevation.command(f"systemctl status {shlex.quote(self.service_name)}"),
            input=elevation.input,
        )
        if result.is_failure:
            raise CommandError(REASON_VERIFICATION_FAILED, stderr=result.stderr)


def build_strategies(
    install_side_bundle: bool = False,
    elevation_mode: str = ELEVATION_STDIN,
    service_name: str = DEFAULT_SERVICE_NAME,
    command_timeout: float = SSH_COMMAND_TIMEOUT,
    rng: Optional[random.Random] = None,
    transfer: Optional[ArtifactTransfer] = None,
    logger: Optional[DeployLogger] = None,
) -> Dict[HostFlavor, InstallStrategy]:
    """Build the one strategy per flavor shared by every host worker."""
    common = dict(
        transfer=transfer or ArtifactTransfer(logger=logger),
        service_name=service_name,
        command_timeout=command_timeout,
        logger=logger,
    )
    return {
        HostFlavor.EMBEDDED: EmbeddedInstall(rng=rng, **common),
        HostFlavor.PACKAGE_MANAGED: PackageInstall(
            install_side_bundle=install_side_bundle,
            elevation_mode=elevation_mode,
            **common,
        ),
    }
