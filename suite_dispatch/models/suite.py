"""Models for suites and the project-level defaults applied to them."""

import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import Field, SecretStr, field_validator

from suite_dispatch.models.base import Model

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")

UNIT_SECONDS: Mapping[str, float] = {"h": 3600, "m": 60, "s": 1, "ms": 0.001}


def parse_duration(value: str) -> float:
    """Parse a duration such as "90s", "10m" or "1h30m" into seconds.

    A bare number is read as seconds.
    """
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    parts = _DURATION_PART.findall(text)
    if not parts or "".join(number + unit for number, unit in parts) != text:
        raise ValueError(f"Invalid duration '{value}'")
    return sum(float(number) * UNIT_SECONDS[unit] for number, unit in parts)


class ImagePullAuth(Model):
    """Registry credentials used by the backend to pull a suite image."""

    user: str
    token: SecretStr


class FileRef(Model):
    """Local file uploaded alongside a suite."""

    src: Path = Field(..., description="Path of the file on this machine")
    dst: str = Field(..., description="Path of the file inside the container")


class SuiteSettings(Model):
    """Fields a suite may set itself or inherit from the project defaults."""

    image: str | None = Field(default=None, description="Container image to run")
    image_pull_auth: ImagePullAuth | None = None
    entrypoint: str | None = Field(default=None, description="Command to run")
    timeout: float | None = Field(
        default=None, ge=0, description="Attempt timeout in seconds (e.g., 300, '5m')"
    )
    retries: int | None = Field(
        default=None, ge=0, description="How many times a failed suite is resubmitted"
    )
    env: Mapping[str, str] = Field(default_factory=dict)
    files: Sequence[FileRef] = Field(default_factory=list)
    artifacts: Sequence[str] = Field(
        default_factory=list, description="Glob patterns of files the backend keeps"
    )
    metadata: Mapping[str, str] = Field(default_factory=dict)

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value


class SuiteDefaults(SuiteSettings):
    """Project-level values filled into every suite that leaves them unset."""

    name: str | None = Field(
        default=None, description="Prefix prepended to every suite name"
    )


class Suite(SuiteSettings):
    """A unit of test work submitted to the backend as a single job."""

    name: str = Field(..., min_length=1)
    attempt: int = Field(
        default=0, ge=0, description="Attempts made before this submission"
    )

    def next_attempt(self) -> "Suite":
        """Return the same suite ready to be resubmitted."""
        return self.model_copy(update={"attempt": self.attempt + 1})


def merge_defaults(suite: Suite, defaults: SuiteDefaults) -> Suite:
    """Fill the fields a suite leaves unset from the project defaults.

    Values set on the suite always win. Files and artifact patterns are
    combined, suite entries first.
    """
    return suite.model_copy(
        update={
            "name": merge_name(suite.name, defaults.name),
            "image": suite.image or defaults.image,
            "image_pull_auth": suite.image_pull_auth or defaults.image_pull_auth,
            "entrypoint": suite.entrypoint or defaults.entrypoint,
            "timeout": suite.timeout or defaults.timeout,
            "retries": suite.retries if suite.retries is not None else defaults.retries,
            "env": merge_mapping(suite.env, defaults.env),
            "files": [*suite.files, *defaults.files],
            "artifacts": merge_patterns(suite.artifacts, defaults.artifacts),
            "metadata": merge_mapping(suite.metadata, defaults.metadata),
        }
    )


def merge_name(name: str, prefix: str | None) -> str:
    if not prefix:
        return name
    return f"{prefix} {name}"


def merge_mapping(
    values: Mapping[str, str], defaults: Mapping[str, str]
) -> dict[str, str]:
    return {**defaults, **values}


def merge_patterns(patterns: Sequence[str], defaults: Sequence[str]) -> list[str]:
    merged = list(patterns)
    merged.extend(pattern for pattern in defaults if pattern not in merged)
    return merged
