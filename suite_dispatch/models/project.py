"""Models for the project file that describes a run."""

from collections import Counter
from collections.abc import Sequence
from pathlib import Path
from typing import Literal, Self

from pydantic import Field, model_validator

from suite_dispatch.models.base import Model
from suite_dispatch.models.suite import Suite, SuiteDefaults

type DownloadWhen = Literal["always", "pass", "fail", "never"]


class ArtifactDownload(Model):
    """Which artifacts are fetched after a suite finishes, and where to."""

    when: DownloadWhen = Field(
        default="never", description="Suite outcome that triggers a download"
    )
    match: Sequence[str] = Field(
        default_factory=lambda: ["*"], description="Glob patterns of artifact names"
    )
    directory: Path = Field(
        default=Path("artifacts"), description="Root directory for downloads"
    )
    include_timed_out: bool = Field(
        default=False, description="Also download artifacts of timed out suites"
    )


class ArtifactsConfig(Model):
    """Artifact handling configuration."""

    download: ArtifactDownload = Field(default_factory=ArtifactDownload)


class Project(Model):
    """Complete description of a run: suites, defaults and run policy."""

    version: str = Field(..., description="Project file schema version")
    concurrency: int = Field(default=1, ge=1, description="Max simultaneous jobs")
    retries: int = Field(
        default=0, ge=0, description="Resubmissions allowed for a failed suite"
    )
    poll_interval: float = Field(
        default=15, gt=0, description="Seconds between job status checks"
    )
    progress_interval: float = Field(
        default=10, gt=0, description="Seconds between progress log lines"
    )
    stop_timeout: float = Field(
        default=60, gt=0, description="Seconds allowed for a stop request"
    )
    defaults: SuiteDefaults = Field(default_factory=SuiteDefaults)
    suites: Sequence[Suite] = Field(default_factory=list)
    artifacts: ArtifactsConfig = Field(default_factory=ArtifactsConfig)

    @model_validator(mode="after")
    def _check_unique_suite_names(self) -> Self:
        counts = Counter(suite.name for suite in self.suites)
        duplicates = sorted(name for name, count in counts.items() if count > 1)
        if duplicates:
            raise ValueError(f"Duplicate suite names: {', '.join(duplicates)}")
        return self

    def select_suites(self, names: Sequence[str]) -> "Project":
        """Return a copy of the project restricted to the named suites.

        Raises:
            ValueError: If a requested name does not match any suite

        """
        if not names:
            return self

        known = {suite.name for suite in self.suites}
        if missing := [name for name in names if name not in known]:
            raise ValueError(f"No suite named: {', '.join(missing)}")

        wanted = set(names)
        return self.model_copy(
            update={"suites": [s for s in self.suites if s.name in wanted]}
        )
