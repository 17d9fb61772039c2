"""Pydantic models for hosted image runner API responses."""

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel

type RunnerStatus = Literal[
    "Pending",
    "Uploading",
    "Running",
    "Succeeded",
    "Failed",
    "Cancelled",
    "Terminated",
]


class Runner(BaseModel):
    """A runner (one job) as returned by the create and status endpoints."""

    id: str
    status: RunnerStatus
    termination_reason: str | None = None


class ArtifactList(BaseModel):
    """Response from the list artifacts endpoint."""

    artifacts: Sequence[str] = ()
