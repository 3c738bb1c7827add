"""
Worker Exceptions

Raised to the immediate caller; none of them changes the held config.
"""


class WorkerError(Exception):
    """Base class for worker errors."""


class InvalidConfigError(WorkerError):
    """Raised when a pushed config is empty or malformed."""


class NotConfiguredError(WorkerError):
    """Raised when work is requested before any config was pushed."""


class UpstreamError(WorkerError):
    """Raised when the configured target is unreachable or answers with an error."""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)
