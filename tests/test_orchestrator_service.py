"""Tests for batch orchestration."""

import pytest

from fleetdeploy.models import HostTarget
from fleetdeploy.services.orchestrator_service import Orchestrator, ResultCollector, run_batch

from tests.conftest import DEBIAN_OS_RELEASE, FakeHost, FakeTransport


def targets(*addresses):
    return [HostTarget(address) for address in addresses]


@pytest.mark.asyncio
async def test_scenario_all_embedded_hosts_succeed(credentials, artifacts, make_worker):
    hosts = targets("10.0.0.1", "10.0.0.2", "10.0.0.3")
    transport = FakeTransport({host.address: FakeHost() for host in hosts})

    summary = await Orchestrator(make_worker(transport)).run_batch(hosts, credentials, artifacts)

    assert (summary.total, summary.succeeded, summary.failed) == (3, 3, 0)
    assert summary.failed_hosts == []


@pytest.mark.asyncio
async def test_scenario_one_host_fails_verification(credentials, artifacts, make_worker):
    hosts = targets("10.0.0.1", "10.0.0.2")
    transport = FakeTransport(
        {
            "10.0.0.1": FakeHost(),
            "10.0.0.2": FakeHost(os_release=DEBIAN_OS_RELEASE, service_running=False),
        }
    )

    summary = await Orchestrator(make_worker(transport)).run_batch(hosts, credentials, artifacts)

    assert (summary.total, summary.succeeded, summary.failed) == (2, 1, 1)
    assert summary.failed_hosts == ["10.0.0.2"]
    assert summary.failures[0].failure_reason == "service verification failed"


@pytest.mark.asyncio
async def test_concurrent_sessions_never_exceed_limit(credentials, artifacts, make_worker):
    hosts = targets(*(f"10.0.1.{i}" for i in range(25)))
    transport = FakeTransport(
        {host.address: FakeHost() for host in hosts}, command_delay=0.001
    )

    summary = await Orchestrator(make_worker(transport), max_concurrency=4).run_batch(
        hosts, credentials, artifacts
    )

    assert summary.total == 25
    assert transport.max_open_sessions == 4
    assert transport.open_sessions == 0


@pytest.mark.asyncio
async def test_default_limit_is_ten(credentials, artifacts, make_worker):
    hosts = targets(*(f"10.0.2.{i}" for i in range(30)))
    transport = FakeTransport(
        {host.address: FakeHost() for host in hosts}, command_delay=0.001
    )

    await Orchestrator(make_worker(transport)).run_batch(hosts, credentials, artifacts)

    assert transport.max_open_sessions == 10


@pytest.mark.asyncio
async def test_every_host_gets_exactly_one_outcome(credentials, artifacts, make_worker):
    fakes = {
        "ok-1": FakeHost(),
        "locked": FakeHost(accepted_users=set()),
        "down": FakeHost(unreachable=True),
        "broken": FakeHost(failures={"chmod": (1, "operation not permitted")}),
        "ok-2": FakeHost(os_release=DEBIAN_OS_RELEASE),
    }
    hosts = targets(*fakes)
    transport = FakeTransport(fakes)

    summary = await Orchestrator(make_worker(transport), max_concurrency=2).run_batch(
        hosts, credentials, artifacts
    )

    assert len(summary.outcomes) == len(hosts)
    assert sorted(outcome.host for outcome in summary.outcomes) == sorted(fakes)
    assert sorted(summary.failed_hosts) == ["broken", "down", "locked"]
    assert summary.succeeded == 2


@pytest.mark.asyncio
async def test_worker_crash_does_not_cancel_siblings(credentials, artifacts):
    class FlakyWorker:
        async def run(self, host, credentials, artifacts):
            if host.address == "bad":
                raise RuntimeError("worker crashed")
            from fleetdeploy.models import DeploymentOutcome

            return DeploymentOutcome.success(host.address)

    summary = await Orchestrator(FlakyWorker()).run_batch(
        targets("a", "bad", "b"), credentials, artifacts
    )

    assert summary.total == 3
    assert summary.failed_hosts == ["bad"]
    assert summary.failures[0].failure_reason == "RuntimeError: worker crashed"


@pytest.mark.asyncio
async def test_empty_host_list(credentials, artifacts, make_worker):
    summary = await Orchestrator(make_worker(FakeTransport())).run_batch([], credentials, artifacts)
    assert summary.total == 0


@pytest.mark.asyncio
async def test_invalid_concurrency(credentials, artifacts, make_worker):
    with pytest.raises(ValueError):
        await Orchestrator(make_worker(FakeTransport()), max_concurrency=0).run_batch(
            targets("a"), credentials, artifacts
        )


@pytest.mark.asyncio
async def test_result_collector_waits_for_expected_count():
    from fleetdeploy.models import DeploymentOutcome

    collector = ResultCollector(expected=2)
    await collector.submit(DeploymentOutcome.success("a"))
    await collector.submit(DeploymentOutcome.failure("b", "x"))

    outcomes = await collector.collect()

    assert [outcome.host for outcome in outcomes] == ["a", "b"]


def test_run_batch_is_blocking(credentials, artifacts, make_worker):
    hosts = targets("10.0.0.1", "10.0.0.2")
    transport = FakeTransport({host.address: FakeHost() for host in hosts})

    summary = run_batch(hosts, credentials, artifacts, make_worker(transport))

    assert summary.succeeded == 2
