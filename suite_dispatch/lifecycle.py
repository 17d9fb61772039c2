"""Lifecycle of a single suite attempt: submit, poll and classify the job."""

import base64
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from suite_dispatch.cancellation import (
    CancellationToken,
    DeadlineExceeded,
    TokenFinishedError,
)
from suite_dispatch.clients.base import JobClient
from suite_dispatch.errors import (
    SubmissionError,
    SuiteCancelledError,
    SuiteFailedError,
    SuiteTimeoutError,
)
from suite_dispatch.models.job import (
    EnvItem,
    FileData,
    Job,
    JobStatus,
    RunSpec,
    is_terminal,
)
from suite_dispatch.models.result import Attempt
from suite_dispatch.models.suite import Suite

log = logging.getLogger(__name__)

# Ceiling applied to suites without a timeout.
DEFAULT_TIMEOUT = 24 * 60 * 60


def build_run_spec(suite: Suite) -> RunSpec:
    """Build the run specification for a suite, reading its files from disk.

    Raises:
        ValueError: If the suite has no image
        OSError: If a file cannot be read

    """
    if not suite.image:
        raise ValueError(f"suite '{suite.name}' has no image")

    return RunSpec(
        image=suite.image,
        image_pull_auth=suite.image_pull_auth,
        entrypoint=suite.entrypoint,
        env=[EnvItem(name=key, value=value) for key, value in suite.env.items()],
        files=[
            FileData(
                path=ref.dst,
                data=base64.b64encode(ref.src.read_bytes()).decode("ascii"),
            )
            for ref in suite.files
        ],
        artifacts=list(suite.artifacts),
        metadata={**suite.metadata, "name": suite.name},
    )


@dataclass(frozen=True, kw_only=True)
class JobLifecycleController:
    """Runs one attempt of a suite from submission to a terminal outcome.

    Every attempt gets a child of the root token carrying the suite timeout.
    Outcomes are classified, never raised: the returned Attempt is succeeded,
    failed, timed_out or cancelled.
    """

    client: JobClient
    token: CancellationToken
    poll_interval: float = 15
    stop_timeout: float = 60

    async def run_attempt(self, suite: Suite) -> Attempt:
        start_time = datetime.now(timezone.utc)
        timeout = suite.timeout or DEFAULT_TIMEOUT

        def finish(
            status: JobStatus,
            job_id: str | None = None,
            error: Exception | None = None,
        ) -> Attempt:
            return Attempt(
                suite=suite,
                status=status,
                job_id=job_id,
                error=error,
                start_time=start_time,
                end_time=datetime.now(timezone.utc),
            )

        try:
            spec = build_run_spec(suite)
        except (OSError, ValueError) as e:
            log.error("Unable to prepare suite %s: %s", suite.name, e)
            return finish("failed", error=e)

        log.info(
            "Starting suite: suite=%s image=%s attempt=%d",
            suite.name,
            suite.image,
            suite.attempt + 1,
        )

        with self.token.child(timeout=timeout) as scope:
            try:
                job = await scope.guard(self.client.submit(spec))
            except DeadlineExceeded:
                return finish("timed_out", error=SuiteTimeoutError(timeout))
            except TokenFinishedError:
                return finish("cancelled", error=SuiteCancelledError())
            except Exception as e:
                log.error("Failed to submit suite %s: %s", suite.name, e)
                return finish("failed", error=SubmissionError(suite.name, e))

            log.info("Started suite: suite=%s job_id=%s", suite.name, job.id)

            try:
                job = await self.poll(scope, job)
            except TokenFinishedError as e:
                await self.stop_job(suite.name, job.id)
                if isinstance(e, DeadlineExceeded):
                    return finish("timed_out", job.id, SuiteTimeoutError(timeout))
                return finish("cancelled", job.id, SuiteCancelledError())
            except Exception as e:
                log.error(
                    "Failed to get status: suite=%s job_id=%s error=%s",
                    suite.name,
                    job.id,
                    e,
                )
                return finish("failed", job.id, e)

        if job.status != "succeeded":
            return finish(
                "failed", job.id, SuiteFailedError(suite.name, job.termination_reason)
            )
        return finish("succeeded", job.id)

    async def poll(self, scope: CancellationToken, job: Job) -> Job:
        """Poll the job status until the backend reports a terminal state.

        Raises:
            Cancelled: If the run was interrupted
            DeadlineExceeded: If the attempt timed out

        """
        last_status = job.status
        while not is_terminal(job.status):
            if not await scope.sleep(self.poll_interval):
                scope.raise_if_finished()

            job = await scope.guard(self.client.status(job.id))
            if job.status != last_status:
                log.info(
                    "Status change: job_id=%s old=%s new=%s",
                    job.id,
                    last_status,
                    job.status,
                )
                last_status = job.status

        return job

    async def stop_job(self, suite_name: str, job_id: str) -> None:
        """Ask the backend to stop a job, logging rather than raising failures.

        The attempt token has already finished by now, so the request runs
        under an independent token with its own timeout.
        """
        with CancellationToken(timeout=self.stop_timeout) as scope:
            try:
                await scope.guard(self.client.stop(job_id))
            except Exception as e:
                log.error(
                    "Failed to stop job: suite=%s job_id=%s error=%s",
                    suite_name,
                    job_id,
                    e,
                )
                return

        log.info("Stopped job: suite=%s job_id=%s", suite_name, job_id)
