"""Models for remote jobs and the run specifications that create them."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal

from suite_dispatch.models.suite import ImagePullAuth

type JobStatus = Literal[
    "pending",
    "running",
    "succeeded",
    "failed",
    "cancelled",
    "timed_out",
]

TERMINAL_STATUSES: frozenset[JobStatus] = frozenset(
    ["succeeded", "failed", "cancelled", "timed_out"]
)


def is_terminal(status: JobStatus) -> bool:
    """Check whether a job in this status will never change again."""
    return status in TERMINAL_STATUSES


@dataclass(frozen=True, kw_only=True)
class Job:
    """A remote execution instance as last reported by the job client."""

    id: str
    status: JobStatus
    termination_reason: str | None = None


@dataclass(frozen=True, kw_only=True)
class EnvItem:
    """Environment variable passed to the container."""

    name: str
    value: str


@dataclass(frozen=True, kw_only=True)
class FileData:
    """File content uploaded with a run, base64 encoded."""

    path: str
    data: str


@dataclass(frozen=True, kw_only=True)
class RunSpec:
    """Everything the backend needs to start a job for one suite attempt."""

    image: str
    image_pull_auth: ImagePullAuth | None = None
    entrypoint: str | None = None
    env: Sequence[EnvItem] = field(default_factory=list)
    files: Sequence[FileData] = field(default_factory=list)
    artifacts: Sequence[str] = field(default_factory=list)
    metadata: Mapping[str, str] = field(default_factory=dict)
