"""Load project files describing the suites of a run."""

import asyncio
from pathlib import Path

import yaml
from pydantic import ValidationError

from suite_dispatch.models.project import Project


async def load_project(path: Path) -> Project:
    """Load and validate a project file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid YAML or not a valid project

    """
    if not path.is_file():
        raise FileNotFoundError(f"Project file not found: {path}")

    text = await asyncio.to_thread(path.read_text, encoding="utf-8")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Project file {path} must contain a mapping")

    try:
        return Project.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid project file {path}: {e}") from e
