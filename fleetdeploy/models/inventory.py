"""
Inventory Models

Dataclass models for deployment targets, credentials and artifacts.
"""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Mapping, Optional, Iterator


@dataclass(frozen=True)
class HostTarget:
    """A remote device targeted for deployment."""

    address: str

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class Credential:
    """Username/secret pair tried against a host."""

    username: str
    secret: str = field(repr=False)

    def __repr__(self) -> str:
        return f"Credential(username={self.username})"


@dataclass(frozen=True)
class DeviceClass:
    """A device family and the credentials to try on it, in order."""

    name: str
    label: str
    credentials: tuple[Credential, ...]

    def __repr__(self) -> str:
        return f"DeviceClass(name={self.name}, credentials={len(self.credentials)})"


@dataclass(frozen=True)
class Artifact:
    """Local file contents and where they go on the remote host."""

    local_bytes: bytes = field(repr=False)
    remote_path: str
    source: Optional[str] = None

    @property
    def basename(self) -> str:
        return PurePosixPath(self.remote_path).name

    @property
    def remote_dir(self) -> str:
        return str(PurePosixPath(self.remote_path).parent)

    @property
    def size(self) -> int:
        return len(self.local_bytes)

    def __repr__(self) -> str:
        return f"Artifact(remote_path={self.remote_path}, size={self.size})"


class ArtifactSet:
    """
    Read-only mapping of artifact role to Artifact.

    Shared by every host worker of a batch; nothing mutates it after load.
    """

    def __init__(self, artifacts: Optional[Mapping[str, Artifact]] = None):
        self._artifacts = MappingProxyType(dict(artifacts or {}))

    def get(self, role: str) -> Optional[Artifact]:
        return self._artifacts.get(role)

    def __getitem__(self, role: str) -> Artifact:
        return self._artifacts[role]

    def __contains__(self, role: object) -> bool:
        return role in self._artifacts

    def __iter__(self) -> Iterator[str]:
        return iter(self._artifacts)

    def __len__(self) -> int:
        return len(self._artifacts)

    def missing(self, roles: list[str]) -> list[str]:
        """Return the roles from `roles` that are not loaded."""
        return [role for role in roles if role not in self._artifacts]

    def items(self):
        return self._artifacts.items()

    def __repr__(self) -> str:
        return f"ArtifactSet(roles={sorted(self._artifacts)})"
