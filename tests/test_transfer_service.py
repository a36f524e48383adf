"""Tests for the scp sink transfer."""

import pytest

from fleetdeploy.exceptions import NetworkError, TransferError
from fleetdeploy.models import Credential, SSHResult
from fleetdeploy.services.transfer_service import (
    ArtifactTransfer,
    build_sink_stream,
    parse_sink_errors,
)

from tests.conftest import FakeHost, FakeTransport


class ScriptedSession:
    host = "10.0.0.9"
    credential = Credential("admin", "s3cret")

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def run(self, command, input=None, timeout=None):
        self.calls.append((command, input))
        if self.error:
            raise self.error
        return self.result


def test_sink_stream_layout():
    stream = build_sink_stream(b"hello", "/opt/status-updater/config")
    assert stream == b"C0644 5 config\nhello\x00"


def test_sink_stream_mode():
    assert build_sink_stream(b"", "/x/bin", mode=0o755).startswith(b"C0755 0 bin\n")


def test_parse_sink_errors():
    assert parse_sink_errors("\x00\x00\x00") == []
    assert parse_sink_errors("\x00\x02scp: /opt/x: Permission denied\n") == [
        "scp: /opt/x: Permission denied"
    ]


@pytest.mark.asyncio
async def test_push_writes_file():
    transport = FakeTransport({"10.0.0.1": FakeHost()})
    session = await transport.connect("10.0.0.1", Credential("admin", "pw"))

    await ArtifactTransfer().push(session, b"payload", "/opt/status-updater/config")

    assert transport.hosts["10.0.0.1"].files["/opt/status-updater/config"] == b"payload"
    assert transport.hosts["10.0.0.1"].commands == ["scp -t /opt/status-updater/config"]


@pytest.mark.asyncio
async def test_push_twice_is_identical():
    transport = FakeTransport({"10.0.0.1": FakeHost()})
    session = await transport.connect("10.0.0.1", Credential("admin", "pw"))
    transfer = ArtifactTransfer()

    await transfer.push(session, b"same bytes", "/tmp/pkg.deb")
    first = dict(transport.hosts["10.0.0.1"].files)
    await transfer.push(session, b"same bytes", "/tmp/pkg.deb")

    assert transport.hosts["10.0.0.1"].files == first == {"/tmp/pkg.deb": b"same bytes"}
    inputs = transport.hosts["10.0.0.1"].inputs
    assert inputs[0] == inputs[1]


@pytest.mark.asyncio
async def test_push_quotes_remote_path():
    session = ScriptedSession(result=SSHResult(returncode=0, stdout="\x00\x00\x00"))
    await ArtifactTransfer().push(session, b"x", "/tmp/my file.deb")
    assert session.calls[0][0] == "scp -t '/tmp/my file.deb'"


@pytest.mark.asyncio
async def test_non_zero_exit_is_transfer_error():
    session = ScriptedSession(result=SSHResult(returncode=1, stderr="scp: not found"))
    with pytest.raises(TransferError) as exc_info:
        await ArtifactTransfer().push(session, b"x", "/tmp/x")
    assert exc_info.value.remote_path == "/tmp/x"
    assert "scp: not found" in exc_info.value.context


@pytest.mark.asyncio
async def test_sink_error_reply_is_transfer_error():
    session = ScriptedSession(
        result=SSHResult(returncode=0, stdout="\x00\x01scp: /opt: No space left on device\n")
    )
    with pytest.raises(TransferError, match="Failed to transfer /opt/x"):
        await ArtifactTransfer().push(session, b"x", "/opt/x")


@pytest.mark.asyncio
async def test_channel_failure_is_transfer_error():
    session = ScriptedSession(error=NetworkError("SSH channel to 10.0.0.9 failed"))
    with pytest.raises(TransferError):
        await ArtifactTransfer().push(session, b"x", "/tmp/x")
