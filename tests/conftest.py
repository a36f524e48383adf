"""Pytest configuration and in-memory SSH fakes for FleetDeploy."""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

import pytest

from fleetdeploy.constants import (
    EMBEDDED_INSTALL_DIR,
    REMOTE_TMP_DIR,
    ROLE_MAIN_BINARY,
    ROLE_PACKAGE,
    ROLE_RUNTIME_CONFIG,
    ROLE_SIDE_PACKAGE,
    ROLE_TRUST_BUNDLE,
)
from fleetdeploy.exceptions import AuthError, NetworkError
from fleetdeploy.models.inventory import Artifact, ArtifactSet, Credential
from fleetdeploy.models.results import SSHResult
from fleetdeploy.services.install_service import build_strategies
from fleetdeploy.services.worker_service import HostWorker

BUILDROOT_OS_RELEASE = 'NAME=Buildroot\nVERSION=2021.02\nID=buildroot\n'
DEBIAN_OS_RELEASE = 'PRETTY_NAME="Debian GNU/Linux 11 (bullseye)"\nID=debian\n'


@dataclass
class FakeHost:
    """Scripted behaviour of one remote device."""

    os_release: str = BUILDROOT_OS_RELEASE
    accepted_users: Set[str] = field(default_factory=lambda: {"admin"})
    unreachable: bool = False
    # command substring -> (exit status, stderr)
    failures: Dict[str, Tuple[int, str]] = field(default_factory=dict)
    service_running: bool = True
    files: Dict[str, bytes] = field(default_factory=dict)
    commands: List[str] = field(default_factory=list)
    inputs: List[Optional[bytes]] = field(default_factory=list)


def parse_sink_stream(stream: bytes) -> Tuple[str, int, str, bytes]:
    header, _, rest = stream.partition(b"\n")
    mode, length, name = header.decode().split(" ", 2)
    length = int(length)
    assert rest[length:] == b"\x00"
    return mode, length, name, rest[:length]


class FakeSession:
    """Session double that records commands and emulates scp/ps/systemctl."""

    def __init__(self, transport: "FakeTransport", host: str, credential: Credential):
        self.transport = transport
        self.host = host
        self.credential = credential
        self.fake = transport.hosts[host]
        self.close_calls = 0
        self.closed = False

    async def run(self, command: str, input: Optional[bytes] = None, timeout=None) -> SSHResult:
        if self.closed:
            raise NetworkError(f"Session to {self.host} is closed")

        self.fake.commands.append(command)
        self.fake.inputs.append(input)
        await asyncio.sleep(self.transport.command_delay)

        for needle, (status, stderr) in self.fake.failures.items():
            if needle in command:
                return SSHResult(returncode=status, stderr=stderr, host=self.host, command=command)

        stdout = ""
        if command.startswith("cat /etc/os-release"):
            stdout = self.fake.os_release
        elif command.startswith("scp -t "):
            path = command[len("scp -t "):].strip("'")
            _, _, _, data = parse_sink_stream(input)
            self.fake.files[path] = data
            stdout = "\x00\x00\x00"
        elif command.startswith("ps aux"):
            process = "1234 root /opt/status-updater/status-updater\n"
            pattern = command.split("| grep ", 1)[1].split(" |", 1)[0].strip("'")
            if not self.fake.service_running or pattern not in process:
                return SSHResult(returncode=1, host=self.host, command=command)
            stdout = process
        elif "systemctl status" in command and not self.fake.service_running:
            return SSHResult(returncode=3, stdout="inactive (dead)", host=self.host, command=command)

        return SSHResult(returncode=0, stdout=stdout, host=self.host, command=command)

    async def close(self) -> None:
        self.close_calls += 1
        if self.closed:
            return
        self.closed = True
        self.transport.open_sessions -= 1


class FakeTransport:
    """Transport double counting concurrently open sessions."""

    def __init__(self, hosts: Optional[Dict[str, FakeHost]] = None, command_delay: float = 0):
        self.hosts: Dict[str, FakeHost] = hosts or {}
        self.command_delay = command_delay
        self.attempts: List[Tuple[str, str]] = []
        self.sessions: List[FakeSession] = []
        self.open_sessions = 0
        self.max_open_sessions = 0

    async def connect(self, host: str, credential: Credential) -> FakeSession:
        self.attempts.append((host, credential.username))
        await asyncio.sleep(0)

        fake = self.hosts.setdefault(host, FakeHost())
        if fake.unreachable:
            raise NetworkError(f"SSH connection to {host} failed after 3 attempts")
        if credential.username not in fake.accepted_users:
            raise AuthError(host, credential.username)

        session = FakeSession(self, host, credential)
        self.sessions.append(session)
        self.open_sessions += 1
        self.max_open_sessions = max(self.max_open_sessions, self.open_sessions)
        return session


@pytest.fixture
def credentials() -> List[Credential]:
    return [
        Credential("root", "toor"),
        Credential("admin", "s3cret"),
        Credential("operator", "hunter2"),
    ]


@pytest.fixture
def artifacts() -> ArtifactSet:
    return ArtifactSet(
        {
            ROLE_MAIN_BINARY: Artifact(b"\x7fELF-binary", f"{EMBEDDED_INSTALL_DIR}/status-updater"),
            ROLE_TRUST_BUNDLE: Artifact(b"-----BEGIN CERTIFICATE-----", f"{EMBEDDED_INSTALL_DIR}/cacert.pem"),
            ROLE_RUNTIME_CONFIG: Artifact(b"broker=mqtt.local\n", f"{EMBEDDED_INSTALL_DIR}/config"),
            ROLE_PACKAGE: Artifact(b"!<arch>deb", f"{REMOTE_TMP_DIR}/status-updater_1.0_armhf.deb"),
            ROLE_SIDE_PACKAGE: Artifact(b"PK\x03\x04zip", f"{REMOTE_TMP_DIR}/lldpd-packages.zip"),
        }
    )


@pytest.fixture
def make_worker() -> Callable[..., HostWorker]:
    def factory(transport: FakeTransport, **strategy_options) -> HostWorker:
        strategy_options.setdefault("rng", random.Random(7))
        return HostWorker(transport, build_strategies(**strategy_options))

    return factory
