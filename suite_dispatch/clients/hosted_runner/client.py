"""Hosted image runner client implementation."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import quote

import aiohttp

from suite_dispatch.clients.base import (
    JobClient,
    JobClientError,
    artifact_path,
    write_artifact,
)
from suite_dispatch.clients.hosted_runner.config import HostedRunnerConfig
from suite_dispatch.clients.hosted_runner.models import (
    ArtifactList,
    Runner,
    RunnerStatus,
)
from suite_dispatch.models.job import Job, JobStatus, RunSpec

log = logging.getLogger(__name__)

RUNNERS_PATH = "/v1alpha1/hosted/image/runners"

USER_AGENT = "suite-dispatch"

RUNNER_TO_JOB_STATUS: Mapping[RunnerStatus, JobStatus] = {
    "Pending": "pending",
    "Uploading": "running",
    "Running": "running",
    "Succeeded": "succeeded",
    "Failed": "failed",
    "Cancelled": "cancelled",
    "Terminated": "failed",
}


@dataclass(frozen=True, kw_only=True)
class HostedRunnerClient(JobClient):
    """Client for a backend that runs container images as jobs."""

    config: HostedRunnerConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: HostedRunnerConfig
    ) -> AsyncGenerator["HostedRunnerClient", None]:
        """Create client with managed session lifecycle."""
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            auth=aiohttp.BasicAuth(
                config.username, config.access_key.get_secret_value()
            ),
            headers={"User-Agent": USER_AGENT},
            timeout=aiohttp.ClientTimeout(total=config.request_timeout),
        ) as session:
            yield cls(config=config, session=session)

    async def submit(self, spec: RunSpec) -> Job:
        """Create a runner for the run specification."""
        payload = build_payload(spec)

        log.info(
            "Triggering run: api_base_url=%s, image=%s, entrypoint=%s, files=%d",
            self.config.api_base_url,
            spec.image,
            spec.entrypoint,
            len(spec.files),
        )

        async with self.session.post(RUNNERS_PATH, json=payload) as response:
            if response.status not in {200, 201}:
                text = await response.text()
                raise JobClientError(
                    f"Failed to trigger run: {response.status} {text}"
                )
            data = await response.json()

        runner = Runner.model_validate(data)
        log.info("Created runner %s for image %s", runner.id, spec.image)
        return to_job(runner)

    async def status(self, job_id: str) -> Job:
        """Get the runner status."""
        url = f"{RUNNERS_PATH}/{job_id}/status"

        async with self.session.get(url) as response:
            if response.status != 200:
                text = await response.text()
                raise JobClientError(
                    f"Failed to get run status: {response.status} {text}"
                )
            data = await response.json()

        return to_job(Runner.model_validate(data))

    async def stop(self, job_id: str) -> None:
        """Terminate the runner."""
        url = f"{RUNNERS_PATH}/{job_id}"

        async with self.session.delete(url) as response:
            if response.status not in {200, 202, 204}:
                text = await response.text()
                raise JobClientError(f"Failed to stop run: {response.status} {text}")

    async def list_artifacts(self, job_id: str) -> Sequence[str]:
        """List artifact names kept for the runner."""
        url = f"{RUNNERS_PATH}/{job_id}/artifacts"

        async with self.session.get(url) as response:
            if response.status != 200:
                text = await response.text()
                raise JobClientError(
                    f"Failed to list artifacts: {response.status} {text}"
                )
            data = await response.json()

        return ArtifactList.model_validate(data).artifacts

    async def download_artifact(self, job_id: str, name: str, dest_dir: Path) -> Path:
        """Download one artifact below dest_dir, keeping its relative folders."""
        target = artifact_path(dest_dir, name)
        url = f"{RUNNERS_PATH}/{job_id}/artifacts/{quote(name, safe='')}"

        async with self.session.get(url) as response:
            if response.status != 200:
                text = await response.text()
                raise JobClientError(
                    f"Failed to download artifact {name}: {response.status} {text}"
                )
            content = await response.read()

        await asyncio.to_thread(write_artifact, target, content)
        return target


def build_payload(spec: RunSpec) -> dict[str, Any]:
    """Build the create runner request body."""
    container: dict[str, Any] = {"name": spec.image}
    if spec.image_pull_auth is not None:
        container["auth"] = {
            "user": spec.image_pull_auth.user,
            "token": spec.image_pull_auth.token.get_secret_value(),
        }

    return {
        "container": container,
        "entrypoint": spec.entrypoint,
        "env": [{"name": item.name, "value": item.value} for item in spec.env],
        "files": [{"path": item.path, "data": item.data} for item in spec.files],
        "artifacts": list(spec.artifacts),
        "metadata": dict(spec.metadata),
    }


def to_job(runner: Runner) -> Job:
    return Job(
        id=runner.id,
        status=RUNNER_TO_JOB_STATUS[runner.status],
        termination_reason=runner.termination_reason or None,
    )
