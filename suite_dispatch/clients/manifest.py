"""Job client manifests registered under the suite_dispatch.clients group."""

import json
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel, ValidationError

from suite_dispatch.clients.base import JobClient


class ClientConfigError(ValueError):
    """Raised when the --client-config JSON does not fit the client."""


@dataclass(frozen=True, kw_only=True)
class ClientManifest[ConfigT: BaseModel]:
    """Manifest describing a job client plugin.

    config_cls validates the JSON object passed with --client-config; the
    hosted runner, for instance, requires username and access_key.
    client_factory opens a client for one run from the validated settings.
    """

    config_cls: type[ConfigT]
    client_factory: Callable[[ConfigT], AbstractAsyncContextManager[JobClient]]

    def describe_fields(self) -> str:
        """List the settings the client accepts, required ones marked."""
        return ", ".join(
            f"{name} (required)" if field.is_required() else name
            for name, field in self.config_cls.model_fields.items()
        )

    def load_config(self, raw: str) -> ConfigT:
        """Validate the --client-config JSON object against config_cls.

        Raises:
            ClientConfigError: If the text is not a JSON object or a field is
                missing or invalid. The message lists the accepted settings.

        """
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ClientConfigError(f"--client-config is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ClientConfigError(
                "--client-config must be a JSON object with the settings: "
                f"{self.describe_fields()}"
            )

        try:
            return self.config_cls.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise ClientConfigError(
                f"Invalid --client-config ({problems}). "
                f"Expected settings: {self.describe_fields()}"
            ) from e
