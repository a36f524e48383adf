"""
Artifact transfer over the scp sink protocol.

The remote side runs `scp -t <path>` and reads one file record from stdin:
a `C<mode> <length> <name>` header line, the raw bytes, then a null byte.
The sink acknowledges each step with a null byte on stdout, or reports
problems with a 0x01 (warning) / 0x02 (fatal) byte followed by a message.
"""

import shlex
from pathlib import PurePosixPath
from typing import Optional

from fleetdeploy.exceptions import CommandError, NetworkError, TransferError
from fleetdeploy.logger import DeployLogger
from fleetdeploy.models.inventory import Artifact

SCP_WARNING = "\x01"
SCP_FATAL = "\x02"


def build_sink_stream(data: bytes, remote_path: str, mode: int = 0o644) -> bytes:
    """Build the single-file record understood by `scp -t`."""
    header = f"C{mode:04o} {len(data)} {PurePosixPath(remote_path).name}\n"
    return header.encode("utf-8") + data + b"\x00"


def parse_sink_errors(stdout: str) -> list[str]:
    """Extract error messages the sink reported in its acknowledgements."""
    errors = []
    for marker in (SCP_WARNING, SCP_FATAL):
        for chunk in stdout.split(marker)[1:]:
            message = chunk.split("\n", 1)[0].strip("\x00").strip()
            errors.append(message or "remote scp reported an error")
    return errors


class ArtifactTransfer:
    """Pushes in-memory buffers to paths on a remote host."""

    def __init__(self, scp_binary: str = "scp", logger: Optional[DeployLogger] = None):
        self.scp_binary = scp_binary
        self.logger = logger

    def sink_command(self, remote_path: str) -> str:
        return f"{self.scp_binary} -t {shlex.quote(remote_path)}"

    async def push(self, session, data: bytes, remote_path: str, mode: int = 0o644) -> None:
        """
        Write `data` to `remote_path` on the session's host.

        The destination is not inspected or rolled back on failure.

        Args:
            session: Open RemoteSession
            data: File contents
            remote_path: Absolute destination path
            mode: File mode sent in the header

        Raises:
            TransferError: If the stream could not be delivered or the sink
                rejected it
        """
        command = self.sink_command(remote_path)
        if self.logger:
            self.logger.host(
                session.host, f"Transferring {len(data)} bytes to {remote_path}", "DEBUG"
            )

        try:
            result = await session.run(
                command, input=build_sink_stream(data, remote_path, mode)
            )
        except (NetworkError, CommandError) as e:
            raise TransferError(remote_path, context=e.message)

        sink_errors = parse_sink_errors(result.stdout)
        if result.is_failure or sink_errors:
            details = sink_errors or [result.stderr.strip() or f"exit status {result.returncode}"]
            raise TransferError(remote_path, context="; ".join(details))

    async def push_artifact(self, session, artifact: Artifact, mode: int = 0o644) -> None:
        await self.push(session, artifact.local_bytes, artifact.remote_path, mode)
