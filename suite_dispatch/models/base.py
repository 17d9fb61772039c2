"""Base model shared by the project configuration models."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model that rejects unknown keys in project files."""

    model_config = ConfigDict(frozen=True, extra="forbid")
