"""Fixtures for unit tests."""

import pytest

from suite_dispatch.cancellation import CancellationToken
from suite_dispatch.testing.reporters import RecordingReporter


@pytest.fixture
def root_token() -> CancellationToken:
    """Create a root cancellation token."""
    return CancellationToken()


@pytest.fixture
def reporter() -> RecordingReporter:
    """Create a reporter recording results."""
    return RecordingReporter()
