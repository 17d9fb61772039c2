"""Lookup of the job client chosen with --client."""

from importlib.metadata import entry_points
from typing import Any

from suite_dispatch.clients.manifest import ClientManifest

ENTRY_POINT_GROUP = "suite_dispatch.clients"


class ClientNotFoundError(Exception):
    """Raised when --client names no installed job client."""


def load_client_manifest(key: str) -> ClientManifest[Any]:
    """Resolve the --client key to the manifest of an installed client.

    Clients register themselves in the suite_dispatch.clients entry point
    group, so a backend shipped by another distribution is found once it is
    installed next to suite_dispatch.

    Raises:
        ClientNotFoundError: If nothing is registered under key. The message
            names the installed clients.

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            manifest: ClientManifest[Any] = entry.load()
            return manifest

    available = ", ".join(sorted(e.name for e in entries)) or "none installed"
    raise ClientNotFoundError(
        f"Unknown --client '{key}'. Installed job clients: {available}"
    )
