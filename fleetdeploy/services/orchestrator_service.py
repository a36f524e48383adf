"""Concurrent batch deployment across a host list."""

import asyncio
from typing import List, Optional, Sequence

from fleetdeploy.constants import DEFAULT_MAX_CONCURRENCY
from fleetdeploy.logger import DeployLogger
from fleetdeploy.models.inventory import ArtifactSet, Credential, HostTarget
from fleetdeploy.models.results import BatchSummary, DeploymentOutcome
from fleetdeploy.services.worker_service import HostWorker


class ResultCollector:
    """
    Single consumer of completed outcomes.

    Workers put outcomes on the queue; only the collector task touches the
    outcome list, so no lock is needed.
    """

    def __init__(self, expected: int):
        self.expected = expected
        self.queue: "asyncio.Queue[DeploymentOutcome]" = asyncio.Queue()
        self.outcomes: List[DeploymentOutcome] = []

    async def submit(self, outcome: DeploymentOutcome) -> None:
        await self.queue.put(outcome)

    async def collect(self) -> List[DeploymentOutcome]:
        while len(self.outcomes) < self.expected:
            self.outcomes.append(await self.queue.get())
        return self.outcomes


class Orchestrator:
    """
    Runs one HostWorker per host behind a counting semaphore.

    The batch always runs to completion: a failed host never cancels its
    siblings, and every host contributes exactly one outcome.
    """

    def __init__(
        self,
        worker: HostWorker,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        logger: Optional[DeployLogger] = None,
    ):
        self.worker = worker
        self.max_concurrency = max_concurrency
        self.logger = logger

    async def run_batch(
        self,
        hosts: Sequence[HostTarget],
        credentials: Sequence[Credential],
        artifacts: ArtifactSet,
        max_concurrency: Optional[int] = None,
    ) -> BatchSummary:
        """
        Deploy to every host and wait for all of them.

        Args:
            hosts: Targets, one task each
            credentials: Credentials tried in order on every host
            artifacts: Shared read-only artifacts
            max_concurrency: Override for the number of concurrent hosts

        Returns:
            BatchSummary over all outcomes
        """
        limit = self.max_concurrency if max_concurrency is None else max_concurrency
        if limit < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {limit}")

        semaphore = asyncio.Semaphore(limit)
        collector = ResultCollector(expected=len(hosts))

        if self.logger:
            self.logger.log(
                f"Starting batch: {len(hosts)} hosts, {len(credentials)} credentials, "
                f"max {limit} concurrent"
            )

        async def deploy(host: HostTarget) -> None:
            async with semaphore:
                try:
                    outcome = await self.worker.run(host, credentials, artifacts)
                except Exception as e:
                    outcome = DeploymentOutcome.failure(
                        host.address, f"{type(e).__name__}: {e}"
                    )
            await collector.submit(outcome)

        collecting = asyncio.ensure_future(collector.collect())
        await asyncio.gather(*(deploy(host) for host in hosts))
        outcomes = await collecting

        return BatchSummary.from_outcomes(outcomes)


def run_batch(
    hosts: Sequence[HostTarget],
    credentials: Sequence[Credential],
    artifacts: ArtifactSet,
    worker: HostWorker,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    logger: Optional[DeployLogger] = None,
) -> BatchSummary:
    """Blocking entry point: run a whole batch on a fresh event loop."""
    orchestrator = Orchestrator(worker, max_concurrency=max_concurrency, logger=logger)
    return asyncio.run(orchestrator.run_batch(hosts, credentials, artifacts))
