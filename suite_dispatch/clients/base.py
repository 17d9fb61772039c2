"""Abstract base class for remote job execution backends."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from suite_dispatch.models.job import Job, RunSpec


class JobClientError(Exception):
    """Raised when the backend answers a request with an error."""


def artifact_path(dest_dir: Path, name: str) -> Path:
    """Resolve where an artifact named like "chrome/report.xml" is stored.

    Folders in the name are kept below dest_dir so artifacts sharing a file
    name do not overwrite each other.

    Raises:
        JobClientError: If the name resolves outside dest_dir

    """
    root = dest_dir.resolve()
    target = (root / name).resolve()
    if target == root or not target.is_relative_to(root):
        raise JobClientError(f"Artifact {name} points outside {dest_dir}")
    return dest_dir / target.relative_to(root)


def write_artifact(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)


@dataclass(frozen=True, kw_only=True)
class JobClient(ABC):
    """Abstract client for a backend that runs suite images as jobs.

    The orchestrator never inspects how a backend works: it submits a run,
    polls its status, stops it when a suite times out or is cancelled, and
    fetches the artifacts the job left behind.
    """

    @abstractmethod
    async def submit(self, spec: RunSpec) -> Job:
        """Start a job for the given run specification.

        Args:
            spec: Image, command, environment and files for the job

        Returns:
            The created job, usually in pending status

        """

    @abstractmethod
    async def status(self, job_id: str) -> Job:
        """Get the current state of a job."""

    @abstractmethod
    async def stop(self, job_id: str) -> None:
        """Ask the backend to stop a job."""

    @abstractmethod
    async def list_artifacts(self, job_id: str) -> Sequence[str]:
        """List the names of the artifacts a job produced."""

    @abstractmethod
    async def download_artifact(self, job_id: str, name: str, dest_dir: Path) -> Path:
        """Download one artifact into dest_dir, keeping its relative folders.

        Returns:
            Path of the downloaded file

        Raises:
            JobClientError: If the artifact cannot be fetched or its name
                points outside dest_dir

        """
