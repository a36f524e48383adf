"""Tests for host flavor detection."""

import pytest

from fleetdeploy.exceptions import NetworkError
from fleetdeploy.models import Credential, SSHResult
from fleetdeploy.services.flavor_service import HostFlavor, detect_flavor

from tests.conftest import BUILDROOT_OS_RELEASE, DEBIAN_OS_RELEASE, FakeHost, FakeTransport


async def connect(host: FakeHost):
    transport = FakeTransport({"h": host})
    return await transport.connect("h", Credential("admin", "pw"))


@pytest.mark.asyncio
async def test_buildroot_is_embedded():
    session = await connect(FakeHost(os_release=BUILDROOT_OS_RELEASE))
    assert await detect_flavor(session) == HostFlavor.EMBEDDED


@pytest.mark.asyncio
async def test_debian_is_package_managed():
    session = await connect(FakeHost(os_release=DEBIAN_OS_RELEASE))
    assert await detect_flavor(session) == HostFlavor.PACKAGE_MANAGED


@pytest.mark.asyncio
async def test_failed_read_is_package_managed():
    session = await connect(
        FakeHost(failures={"cat /etc/os-release": (1, "No such file or directory")})
    )
    assert await detect_flavor(session) == HostFlavor.PACKAGE_MANAGED


@pytest.mark.asyncio
async def test_channel_error_is_package_managed():
    class BrokenSession:
        async def run(self, command, input=None, timeout=None):
            raise NetworkError("channel closed")

    assert await detect_flavor(BrokenSession()) == HostFlavor.PACKAGE_MANAGED


@pytest.mark.asyncio
async def test_marker_with_failed_exit_is_package_managed():
    class OddSession:
        async def run(self, command, input=None, timeout=None):
            return SSHResult(returncode=2, stdout="NAME=Buildroot")

    assert await detect_flavor(OddSession()) == HostFlavor.PACKAGE_MANAGED
