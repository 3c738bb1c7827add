"""
Controller Exceptions

Error types raised by the configuration authority and its storage backends.
"""

from typing import Optional


class AuthorityError(Exception):
    """Base class for configuration authority errors."""


class StoreError(AuthorityError):
    """Raised when the persistence layer fails to read or write."""


class VersionConflictError(StoreError):
    """Raised when two writers try to claim the same config version."""

    def __init__(self, version: Optional[int] = None):
        self.version = version
        if version is None:
            super().__init__("concurrent config update conflict")
        else:
            super().__init__(f"config version {version} already exists")


class NotFoundError(AuthorityError):
    """Raised when no configuration has been created yet."""
