"""Hosted image runner client manifest."""

from suite_dispatch.clients.hosted_runner.client import HostedRunnerClient
from suite_dispatch.clients.hosted_runner.config import HostedRunnerConfig
from suite_dispatch.clients.manifest import ClientManifest

hosted_runner_manifest = ClientManifest(
    config_cls=HostedRunnerConfig,
    client_factory=HostedRunnerClient.from_config,
)
