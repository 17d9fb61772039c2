"""Suite orchestrator wiring the worker pool to the result aggregator."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from suite_dispatch.aggregator import ResultAggregator
from suite_dispatch.artifacts import ArtifactCollector
from suite_dispatch.cancellation import CancellationToken
from suite_dispatch.clients.base import JobClient
from suite_dispatch.lifecycle import JobLifecycleController
from suite_dispatch.models.project import Project
from suite_dispatch.models.suite import Suite
from suite_dispatch.pool import SuiteQueue, WorkerPool
from suite_dispatch.reporters import Reporter
from suite_dispatch.retry import RetryPolicy

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class SuiteOrchestrator:
    """Runs every suite of a project against a job client."""

    client: JobClient
    project: Project
    token: CancellationToken
    reporters: Sequence[Reporter] = field(default_factory=list)

    async def run(self) -> bool:
        """Run all suites and return whether every one of them passed."""
        project = self.project
        suites = project.suites
        if not suites:
            log.info("No suites to run")

        pool = WorkerPool(
            controller=JobLifecycleController(
                client=self.client,
                token=self.token,
                poll_interval=project.poll_interval,
                stop_timeout=project.stop_timeout,
            ),
            retry_policy=RetryPolicy(max_retries=project.retries),
            token=self.token,
            defaults=project.defaults,
            collector=ArtifactCollector(
                client=self.client, config=project.artifacts.download
            ),
        )
        aggregator = ResultAggregator(
            token=self.token,
            reporters=self.reporters,
            progress_interval=project.progress_interval,
        )

        log.info("Running %d suite(s)...", len(suites))
        queue, results = pool.create_worker_pool(project.concurrency, project.retries)
        producer = asyncio.create_task(submit_suites(queue, suites))

        try:
            passed = await aggregator.collect(results, len(suites))
            await producer
        except BaseException:
            producer.cancel()
            await pool.abort()
            raise

        await pool.shutdown()
        log.info("Suite execution completed")
        return passed


async def submit_suites(queue: SuiteQueue, suites: Sequence[Suite]) -> None:
    for suite in suites:
        await queue.put(suite)
