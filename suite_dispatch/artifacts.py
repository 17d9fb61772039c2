"""Best-effort retrieval of the artifacts a finished suite left behind."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path

from suite_dispatch.clients.base import JobClient
from suite_dispatch.models.project import ArtifactDownload
from suite_dispatch.models.result import ExecResult

log = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def suite_directory_name(suite_name: str) -> str:
    """Turn a suite name into a single, filesystem safe path component."""
    name = _UNSAFE_CHARS.sub("_", suite_name).strip("._")
    return name or "suite"


def matches_any(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatchcase(name, pattern) for pattern in patterns)


def should_download(result: ExecResult, config: ArtifactDownload) -> bool:
    """Decide whether artifacts are fetched for a finished suite.

    Cancelled suites never download. Timed out suites download only when
    configured to; everything else follows the `when` setting applied to the
    suite's own outcome.
    """
    if result.job_id is None or result.status == "cancelled":
        return False
    if result.status == "timed_out" and not config.include_timed_out:
        return False

    match config.when:
        case "always":
            return True
        case "pass":
            return result.passed
        case "fail":
            return not result.passed
        case _:
            return False


@dataclass(frozen=True, kw_only=True)
class ArtifactCollector:
    """Downloads artifacts matching the configured patterns.

    Collection never fails a suite: every error is logged and the collector
    moves on. Files already present are overwritten, never removed.
    """

    client: JobClient
    config: ArtifactDownload

    def suite_dir(self, suite_name: str) -> Path:
        return self.config.directory / suite_directory_name(suite_name)

    async def collect(self, result: ExecResult) -> Sequence[Path]:
        """Download the artifacts of a finished suite if policy allows.

        Returns:
            Paths of the files downloaded

        """
        if result.job_id is None or not should_download(result, self.config):
            return []
        return await self.download(result.name, result.job_id)

    async def download(self, suite_name: str, job_id: str) -> Sequence[Path]:
        directory = self.suite_dir(suite_name)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error(
                "Unable to create artifacts folder: suite=%s path=%s error=%s",
                suite_name,
                directory,
                e,
            )
            return []

        try:
            names = await self.client.list_artifacts(job_id)
        except Exception as e:
            log.error(
                "Failed to look up artifacts: suite=%s job_id=%s error=%s",
                suite_name,
                job_id,
                e,
            )
            return []

        downloaded: list[Path] = []
        for name in names:
            if not matches_any(name, self.config.match):
                continue
            try:
                path = await self.client.download_artifact(job_id, name, directory)
            except Exception as e:
                log.error(
                    "Failed to download an artifact: suite=%s job_id=%s name=%s "
                    "error=%s",
                    suite_name,
                    job_id,
                    name,
                    e,
                )
                continue
            downloaded.append(path)

        log.info(
            "Downloaded %d artifact(s) for suite %s to %s",
            len(downloaded),
            suite_name,
            directory,
        )
        return downloaded
