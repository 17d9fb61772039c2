"""Decides whether a finished suite attempt is resubmitted."""

import logging
from dataclasses import dataclass

from suite_dispatch.models.result import Attempt

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class RetryPolicy:
    """Retry failed and timed out suites within their attempt budget.

    A suite's own retries value wins over the project-wide one. Succeeded
    suites are done and cancelled suites stay cancelled.
    """

    max_retries: int = 0

    def retries_for(self, attempt: Attempt) -> int:
        suite = attempt.suite
        return suite.retries if suite.retries is not None else self.max_retries

    def should_retry(self, attempt: Attempt) -> bool:
        if attempt.status not in {"failed", "timed_out"}:
            return False

        attempts_made = attempt.suite.attempt + 1
        allowed = self.retries_for(attempt) + 1
        if attempts_made >= allowed:
            return False

        log.info(
            "Retrying suite: suite=%s status=%s attempt=%d/%d",
            attempt.suite.name,
            attempt.status,
            attempts_made + 1,
            allowed,
        )
        return True
