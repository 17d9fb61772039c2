"""Integration tests for the hosted image runner client."""

import base64
import re
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from suite_dispatch.clients.base import JobClientError
from suite_dispatch.clients.hosted_runner import HostedRunnerClient, HostedRunnerConfig
from suite_dispatch.models.job import EnvItem, FileData, RunSpec
from suite_dispatch.models.suite import ImagePullAuth
from suite_dispatch.testing.hosted_runner.payloads import (
    artifact_list,
    runner,
    runner_status,
)

API_BASE_URL = "http://runner.test"
RUNNERS_URL = f"{API_BASE_URL}/v1alpha1/hosted/image/runners"
RUNNER_ID = "f6b1c0a2-4f4e-4b1a-9c7d-2d7f0a5b8e31"


@pytest.fixture
def config() -> HostedRunnerConfig:
    """Create test configuration."""
    return HostedRunnerConfig(
        username="test-user",
        access_key=SecretStr("test-key"),
        api_base_url=API_BASE_URL,
    )


@pytest.fixture
async def client(
    config: HostedRunnerConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[HostedRunnerClient, None]:
    """Create client with managed session."""
    async with HostedRunnerClient.from_config(config) as impl:
        yield impl


@pytest.fixture
def spec() -> RunSpec:
    """Create a run specification using every field."""
    return RunSpec(
        image="registry.example.com/tests:latest",
        image_pull_auth=ImagePullAuth(user="puller", token=SecretStr("pull-token")),
        entrypoint="npm test",
        env=[EnvItem(name="BROWSER", value="chrome")],
        files=[
            FileData(
                path="/app/config.json",
                data=base64.b64encode(b"{}").decode("ascii"),
            )
        ],
        artifacts=["*.xml"],
        metadata={"name": "chrome"},
    )


class TestSubmit:
    """Tests for submit."""

    async def test_creates_runner_with_correct_payload(
        self,
        client: HostedRunnerClient,
        aioresponses: aioresponses_cls,
        spec: RunSpec,
    ) -> None:
        """Posts the run specification and returns the pending job."""
        aioresponses.post(RUNNERS_URL, status=201, payload=runner())

        job = await client.submit(spec)

        assert job.id == RUNNER_ID
        assert job.status == "pending"
        call = aioresponses.requests[("POST", URL(RUNNERS_URL))][0]
        assert call.kwargs["json"] == {
            "container": {
                "name": "registry.example.com/tests:latest",
                "auth": {"user": "puller", "token": "pull-token"},
            },
            "entrypoint": "npm test",
            "env": [{"name": "BROWSER", "value": "chrome"}],
            "files": [{"path": "/app/config.json", "data": "e30="}],
            "artifacts": ["*.xml"],
            "metadata": {"name": "chrome"},
        }

    async def test_omits_auth_without_credentials(
        self, client: HostedRunnerClient, aioresponses: aioresponses_cls
    ) -> None:
        """The container carries no auth block without pull credentials."""
        aioresponses.post(RUNNERS_URL, status=200, payload=runner())

        await client.submit(RunSpec(image="alpine:3"))

        call = aioresponses.requests[("POST", URL(RUNNERS_URL))][0]
        assert call.kwargs["json"]["container"] == {"name": "alpine:3"}

    async def test_raises_on_error(
        self,
        client: HostedRunnerClient,
        aioresponses: aioresponses_cls,
        spec: RunSpec,
    ) -> None:
        """Raises JobClientError when the backend rejects the run."""
        aioresponses.post(RUNNERS_URL, status=400, body="bad image")

        with pytest.raises(JobClientError, match="Failed to trigger run: 400"):
            await client.submit(spec)


class TestStatus:
    """Tests for status."""

    @pytest.mark.parametrize(
        ("runner_state", "expected"),
        [
            ("Pending", "pending"),
            ("Uploading", "running"),
            ("Running", "running"),
            ("Succeeded", "succeeded"),
            ("Failed", "failed"),
            ("Cancelled", "cancelled"),
            ("Terminated", "failed"),
        ],
    )
    async def test_maps_runner_status(
        self,
        client: HostedRunnerClient,
        aioresponses: aioresponses_cls,
        runner_state: str,
        expected: str,
    ) -> None:
        """Maps backend runner states to job statuses."""
        aioresponses.get(
            f"{RUNNERS_URL}/{RUNNER_ID}/status",
            payload=runner_status(status=runner_state),
        )

        job = await client.status(RUNNER_ID)

        assert job.id == RUNNER_ID
        assert job.status == expected

    async def test_returns_termination_reason(
        self, client: HostedRunnerClient, aioresponses: aioresponses_cls
    ) -> None:
        """Carries the backend termination reason."""
        aioresponses.get(
            f"{RUNNERS_URL}/{RUNNER_ID}/status",
            payload=runner_status(status="Failed", termination_reason="exit code 1"),
        )

        job = await client.status(RUNNER_ID)

        assert job.termination_reason == "exit code 1"

    async def test_raises_on_error(
        self, client: HostedRunnerClient, aioresponses: aioresponses_cls
    ) -> None:
        """Raises JobClientError when the status lookup fails."""
        aioresponses.get(f"{RUNNERS_URL}/{RUNNER_ID}/status", status=502)

        with pytest.raises(JobClientError, match="Failed to get run status: 502"):
            await client.status(RUNNER_ID)


class TestStop:
    """Tests for stop."""

    async def test_deletes_runner(
        self, client: HostedRunnerClient, aioresponses: aioresponses_cls
    ) -> None:
        """Sends a delete request for the runner."""
        url = f"{RUNNERS_URL}/{RUNNER_ID}"
        aioresponses.delete(url, status=204)

        await client.stop(RUNNER_ID)

        assert len(aioresponses.requests[("DELETE", URL(url))]) == 1

    async def test_raises_on_error(
        self, client: HostedRunnerClient, aioresponses: aioresponses_cls
    ) -> None:
        """Raises JobClientError when the stop request fails."""
        aioresponses.delete(f"{RUNNERS_URL}/{RUNNER_ID}", status=500)

        with pytest.raises(JobClientError, match="Failed to stop run: 500"):
            await client.stop(RUNNER_ID)


class TestArtifacts:
    """Tests for list_artifacts and download_artifact."""

    async def test_lists_artifacts(
        self, client: HostedRunnerClient, aioresponses: aioresponses_cls
    ) -> None:
        """Returns the artifact names kept for the runner."""
        aioresponses.get(
            f"{RUNNERS_URL}/{RUNNER_ID}/artifacts",
            payload=artifact_list(["junit.xml", "console.log"]),
        )

        names = await client.list_artifacts(RUNNER_ID)

        assert list(names) == ["junit.xml", "console.log"]

    async def test_list_raises_on_error(
        self, client: HostedRunnerClient, aioresponses: aioresponses_cls
    ) -> None:
        """Raises JobClientError when listing fails."""
        aioresponses.get(f"{RUNNERS_URL}/{RUNNER_ID}/artifacts", status=404)

        with pytest.raises(JobClientError, match="Failed to list artifacts: 404"):
            await client.list_artifacts(RUNNER_ID)

    async def test_downloads_artifact(
        self,
        client: HostedRunnerClient,
        aioresponses: aioresponses_cls,
        tmp_path: Path,
    ) -> None:
        """Writes the artifact content into the destination folder."""
        aioresponses.get(
            f"{RUNNERS_URL}/{RUNNER_ID}/artifacts/junit.xml", body=b"<testsuites/>"
        )

        path = await client.download_artifact(RUNNER_ID, "junit.xml", tmp_path)

        assert path == tmp_path / "junit.xml"
        assert path.read_bytes() == b"<testsuites/>"

    async def test_download_raises_on_error(
        self,
        client: HostedRunnerClient,
        aioresponses: aioresponses_cls,
        tmp_path: Path,
    ) -> None:
        """Raises JobClientError and writes nothing when the download fails."""
        aioresponses.get(f"{RUNNERS_URL}/{RUNNER_ID}/artifacts/junit.xml", status=500)

        with pytest.raises(JobClientError, match="Failed to download artifact"):
            await client.download_artifact(RUNNER_ID, "junit.xml", tmp_path)

        assert not (tmp_path / "junit.xml").exists()

    async def test_keeps_artifact_folders(
        self,
        client: HostedRunnerClient,
        aioresponses: aioresponses_cls,
        tmp_path: Path,
    ) -> None:
        """Same-named artifacts in different folders do not overwrite each other."""
        for browser in ["chrome", "firefox"]:
            aioresponses.get(
                re.compile(
                    rf"^{re.escape(RUNNERS_URL)}/{RUNNER_ID}/artifacts/"
                    rf"{browser}(%2F|/)report\.xml$"
                ),
                body=f"<{browser}/>".encode(),
            )

        chrome = await client.download_artifact(
            RUNNER_ID, "chrome/report.xml", tmp_path
        )
        firefox = await client.download_artifact(
            RUNNER_ID, "firefox/report.xml", tmp_path
        )

        assert chrome == tmp_path / "chrome" / "report.xml"
        assert firefox == tmp_path / "firefox" / "report.xml"
        assert chrome.read_bytes() == b"<chrome/>"
        assert firefox.read_bytes() == b"<firefox/>"

    @pytest.mark.parametrize("name", ["../escape.txt", "logs/../../escape.txt"])
    async def test_rejects_artifact_outside_folder(
        self,
        client: HostedRunnerClient,
        aioresponses: aioresponses_cls,
        tmp_path: Path,
        name: str,
    ) -> None:
        """Raises JobClientError before requesting a name that leaves the folder."""
        dest_dir = tmp_path / "suite"

        with pytest.raises(JobClientError, match="points outside"):
            await client.download_artifact(RUNNER_ID, name, dest_dir)

        assert not (tmp_path / "escape.txt").exists()
        assert not aioresponses.requests
