"""Errors describing how a suite ended when it did not succeed."""


class SuiteError(Exception):
    """Base class for suite outcome errors."""


class SubmissionError(SuiteError):
    """Raised when the job client rejects a run outright."""

    def __init__(self, suite_name: str, cause: BaseException) -> None:
        super().__init__(f"failed to submit suite '{suite_name}': {cause}")
        self.suite_name = suite_name
        self.cause = cause


class SuiteTimeoutError(SuiteError):
    """Raised when a suite attempt exceeds its configured timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"suite timed out after {timeout:g}s")
        self.timeout = timeout


class SuiteCancelledError(SuiteError):
    """Raised when a suite is abandoned because the run was interrupted."""

    def __init__(self) -> None:
        super().__init__("suite cancelled")


class SuiteFailedError(SuiteError):
    """Raised when the backend reports a non-successful terminal state."""

    def __init__(self, suite_name: str, reason: str | None = None) -> None:
        message = f"suite '{suite_name}' failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.suite_name = suite_name
        self.reason = reason
