"""Single consumer of suite results."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from suite_dispatch.cancellation import CancellationToken
from suite_dispatch.models.result import ExecResult
from suite_dispatch.reporters import Reporter

log = logging.getLogger(__name__)


@dataclass
class ProgressCounter:
    """Number of suites still in progress.

    Shared by the aggregator and the progress ticker. Both run as tasks on the
    same event loop, which serialises every read and write.
    """

    remaining: int

    def decrement(self) -> int:
        self.remaining -= 1
        return self.remaining


async def report_progress(
    token: CancellationToken, counter: ProgressCounter, interval: float
) -> None:
    """Log the number of suites in progress every interval seconds."""
    while await token.sleep(interval):
        log.info("Suites in progress: %d", counter.remaining)


@dataclass(frozen=True, kw_only=True)
class ResultAggregator:
    """Consumes every suite result, feeds reporters and decides the verdict.

    Exactly one task may run collect at a time: reporters are not required to
    be safe for concurrent use.
    """

    token: CancellationToken
    reporters: Sequence[Reporter] = field(default_factory=list)
    progress_interval: float = 10

    async def collect(
        self, results: asyncio.Queue[ExecResult], expected: int
    ) -> bool:
        """Receive expected results and return whether every suite passed."""
        counter = ProgressCounter(remaining=expected)
        passed = True

        with self.token.child() as ticker_token:
            ticker = asyncio.create_task(
                report_progress(ticker_token, counter, self.progress_interval)
            )
            try:
                for _ in range(expected):
                    result = await results.get()
                    counter.decrement()
                    passed = passed and result.passed
                    self.log_result(result)

                    for reporter in self.reporters:
                        reporter.add(result)
            finally:
                ticker_token.cancel()
                await ticker

        for reporter in self.reporters:
            reporter.render()

        return passed

    @staticmethod
    def log_result(result: ExecResult) -> None:
        if result.error is not None:
            log.error(
                "Suite finished: suite=%s passed=%s status=%s job_id=%s "
                "attempts=%d error=%s",
                result.name,
                result.passed,
                result.status,
                result.job_id,
                result.attempts,
                result.error,
            )
            return

        log.info(
            "Suite finished: suite=%s passed=%s status=%s job_id=%s attempts=%d",
            result.name,
            result.passed,
            result.status,
            result.job_id,
            result.attempts,
        )
