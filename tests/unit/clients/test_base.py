"""Tests for helpers shared by job clients."""

from pathlib import Path

import pytest

from suite_dispatch.clients.base import JobClientError, artifact_path, write_artifact


class TestArtifactPath:
    """Tests for artifact_path function."""

    def test_keeps_relative_folders(self, tmp_path: Path) -> None:
        """Folders in the artifact name are kept below the destination."""
        assert artifact_path(tmp_path, "chrome/report.xml") == (
            tmp_path / "chrome" / "report.xml"
        )

    def test_normalizes_inner_parent_references(self, tmp_path: Path) -> None:
        """Parent references that stay inside the destination are allowed."""
        assert artifact_path(tmp_path, "logs/../junit.xml") == tmp_path / "junit.xml"

    @pytest.mark.parametrize("name", ["../escape.txt", "/etc/passwd", ".", "a/../.."])
    def test_rejects_names_outside_destination(
        self, tmp_path: Path, name: str
    ) -> None:
        """Raises JobClientError for names resolving outside the destination."""
        with pytest.raises(JobClientError, match="points outside"):
            artifact_path(tmp_path / "suite", name)


def test_write_artifact_creates_folders(tmp_path: Path) -> None:
    """Missing parent folders are created before writing."""
    target = tmp_path / "chrome" / "logs" / "console.log"

    write_artifact(target, b"ok")

    assert target.read_bytes() == b"ok"
