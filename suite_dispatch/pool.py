"""Suite queue and the worker pool draining it."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from suite_dispatch.artifacts import ArtifactCollector
from suite_dispatch.cancellation import CancellationToken
from suite_dispatch.errors import SuiteCancelledError
from suite_dispatch.lifecycle import JobLifecycleController
from suite_dispatch.models.result import ExecResult
from suite_dispatch.models.suite import Suite, SuiteDefaults, merge_defaults
from suite_dispatch.retry import RetryPolicy

log = logging.getLogger(__name__)


class SuiteQueue:
    """Queue of suites waiting for a worker.

    Producers block on `put` while `maxsize` submitted suites are waiting.
    Resubmissions go through `requeue`, which never blocks, so a worker can
    always hand a failed suite back without waiting on its peers.
    """

    def __init__(self, maxsize: int) -> None:
        self._items: asyncio.Queue[tuple[Suite, bool] | None] = asyncio.Queue()
        self._slots = asyncio.Semaphore(maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, suite: Suite) -> None:
        self._check_open()
        await self._slots.acquire()
        self._items.put_nowait((suite, True))

    def requeue(self, suite: Suite) -> None:
        self._check_open()
        self._items.put_nowait((suite, False))

    async def get(self) -> Suite | None:
        """Return the next suite, or None once the queue is closed and drained."""
        item = await self._items.get()
        if item is None:
            # Leave the marker in place for the remaining workers.
            self._items.put_nowait(None)
            return None

        suite, bounded = item
        if bounded:
            self._slots.release()
        return suite

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._items.put_nowait(None)

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Suite queue is closed")


@dataclass(kw_only=True)
class WorkerPool:
    """Fixed set of workers running suites from a shared queue.

    Each worker applies the project defaults to a fresh suite, runs one
    attempt, and either hands the suite back for another attempt or emits
    its single ExecResult.
    """

    controller: JobLifecycleController
    retry_policy: RetryPolicy
    token: CancellationToken
    defaults: SuiteDefaults = field(default_factory=SuiteDefaults)
    collector: ArtifactCollector | None = None
    _suites: SuiteQueue | None = field(default=None, init=False)
    _workers: list[asyncio.Task[None]] = field(default_factory=list, init=False)

    def create_worker_pool(
        self, concurrency: int, max_retries: int
    ) -> tuple[SuiteQueue, asyncio.Queue[ExecResult]]:
        """Start the workers.

        Returns:
            The queue to submit suites to and the queue results arrive on

        """
        suites = SuiteQueue(maxsize=max_retries + 1)
        results: asyncio.Queue[ExecResult] = asyncio.Queue(maxsize=concurrency)

        log.info("Launching workers: concurrency=%d", concurrency)
        self._suites = suites
        self._workers = [
            asyncio.create_task(self.run_suites(suites, results), name=f"worker-{i}")
            for i in range(concurrency)
        ]
        return suites, results

    async def shutdown(self) -> None:
        """Close the queue and wait for the workers to drain it."""
        if self._suites is not None:
            self._suites.close()
        await asyncio.gather(*self._workers)

    async def abort(self) -> None:
        """Stop the workers without waiting for queued suites."""
        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)

    async def run_suites(
        self, suites: SuiteQueue, results: asyncio.Queue[ExecResult]
    ) -> None:
        while (suite := await suites.get()) is not None:
            if suite.attempt == 0:
                suite = merge_defaults(suite, self.defaults)

            try:
                result = await self.run_suite(suite, suites)
            except Exception as e:
                log.error(
                    "Suite execution failed: suite=%s error=%s", suite.name, e, exc_info=e
                )
                now = datetime.now(timezone.utc)
                result = ExecResult(
                    name=suite.name,
                    status="failed",
                    error=e,
                    start_time=now,
                    end_time=now,
                    attempts=suite.attempt + 1,
                )

            if result is not None:
                await results.put(result)

    async def run_suite(self, suite: Suite, suites: SuiteQueue) -> ExecResult | None:
        """Run one attempt of a suite.

        Returns:
            The suite's final result, or None if it was resubmitted

        """
        if self.token.finished:
            log.info("Skipping suite %s, run was cancelled", suite.name)
            now = datetime.now(timezone.utc)
            return ExecResult(
                name=suite.name,
                status="cancelled",
                error=SuiteCancelledError(),
                start_time=now,
                end_time=now,
                attempts=suite.attempt,
            )

        attempt = await self.controller.run_attempt(suite)

        if self.retry_policy.should_retry(attempt):
            suites.requeue(suite.next_attempt())
            return None

        result = ExecResult.from_attempt(attempt)
        if self.collector is not None:
            await self.collector.collect(result)
        return result
