"""Tests for project loader."""

from pathlib import Path

import pytest

from suite_dispatch.project_loader import load_project


class TestLoadProject:
    """Tests for load_project function."""

    async def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads and validates a project file."""
        path = tmp_path / "project.yml"
        path.write_text(
            """
version: "1.0"
concurrency: 3
retries: 1
defaults:
  name: nightly
  image: registry.example.com/tests:latest
  timeout: 10m
suites:
  - name: chrome
    entrypoint: npm run test:chrome
    env:
      BROWSER: chrome
  - name: firefox
    timeout: 90s
    retries: 0
artifacts:
  download:
    when: fail
    match:
      - "*.xml"
    directory: results
"""
        )

        project = await load_project(path)

        assert project.version == "1.0"
        assert project.concurrency == 3
        assert project.retries == 1
        assert project.defaults.name == "nightly"
        assert project.defaults.timeout == 600
        assert [s.name for s in project.suites] == ["chrome", "firefox"]
        assert project.suites[0].env == {"BROWSER": "chrome"}
        assert project.suites[1].timeout == 90
        assert project.suites[1].retries == 0
        assert project.artifacts.download.when == "fail"
        assert project.artifacts.download.directory == Path("results")

    async def test_raises_for_missing_file(self, tmp_path: Path) -> None:
        """Raises FileNotFoundError when the file does not exist."""
        with pytest.raises(FileNotFoundError, match="Project file not found"):
            await load_project(tmp_path / "project.yml")

    async def test_raises_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ValueError for malformed YAML."""
        path = tmp_path / "project.yml"
        path.write_text("suites: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            await load_project(path)

    async def test_raises_for_non_mapping(self, tmp_path: Path) -> None:
        """Raises ValueError when the document is not a mapping."""
        path = tmp_path / "project.yml"
        path.write_text("- chrome\n- firefox\n")

        with pytest.raises(ValueError, match="must contain a mapping"):
            await load_project(path)

    async def test_raises_for_invalid_project(self, tmp_path: Path) -> None:
        """Raises ValueError when the project fails validation."""
        path = tmp_path / "project.yml"
        path.write_text('version: "1.0"\nconcurrency: 0\n')

        with pytest.raises(ValueError, match="Invalid project file"):
            await load_project(path)
