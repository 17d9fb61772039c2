"""Tests for the project model."""

import pytest
from pydantic import ValidationError

from suite_dispatch.models.project import Project
from suite_dispatch.testing.factories import ProjectFactory, SuiteFactory


def test_defaults() -> None:
    """A minimal project runs one suite at a time without retries."""
    project = Project.model_validate({"version": "1.0"})

    assert project.concurrency == 1
    assert project.retries == 0
    assert project.artifacts.download.when == "never"
    assert project.suites == []


def test_rejects_duplicate_suite_names() -> None:
    """Suite names must be unique."""
    with pytest.raises(ValidationError, match="Duplicate suite names: a"):
        Project.model_validate(
            {"version": "1.0", "suites": [{"name": "a"}, {"name": "a"}]}
        )


def test_rejects_zero_concurrency() -> None:
    """Concurrency must be at least one."""
    with pytest.raises(ValidationError):
        Project.model_validate({"version": "1.0", "concurrency": 0})


class TestSelectSuites:
    """Tests for Project.select_suites."""

    def test_keeps_selected_suites_in_order(self) -> None:
        """Keeps the named suites in project order."""
        project = ProjectFactory.build(
            suites=[SuiteFactory.build(name=name) for name in ["a", "b", "c"]]
        )

        selected = project.select_suites(["c", "a"])

        assert [s.name for s in selected.suites] == ["a", "c"]

    def test_returns_project_without_selection(self) -> None:
        """No selection keeps every suite."""
        project = ProjectFactory.build(suites=[SuiteFactory.build(name="a")])

        assert project.select_suites([]) is project

    def test_raises_for_unknown_suite(self) -> None:
        """Raises ValueError naming the unknown suites."""
        project = ProjectFactory.build(suites=[SuiteFactory.build(name="a")])

        with pytest.raises(ValueError, match="No suite named: b"):
            project.select_suites(["a", "b"])
