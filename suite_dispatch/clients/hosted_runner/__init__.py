"""Hosted image runner job client module."""

from suite_dispatch.clients.hosted_runner.client import HostedRunnerClient
from suite_dispatch.clients.hosted_runner.config import HostedRunnerConfig
from suite_dispatch.clients.hosted_runner.manifest import hosted_runner_manifest

__all__ = ["HostedRunnerClient", "HostedRunnerConfig", "hosted_runner_manifest"]
