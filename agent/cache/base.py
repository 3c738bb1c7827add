"""
Cache Backend Base Class

Key-value store used by the agent to remember the last configuration it
delivered to its worker. The lock primitives (acquire/release) are part of
the interface for backends shared between agents; config synchronization
itself only uses get_key and set_key on the agent's own key.
"""

from abc import ABC, abstractmethod
from typing import Optional


class CacheBackend(ABC):
    """Abstract base class for agent cache backends."""

    @abstractmethod
    def ping(self) -> bool:
        """
        Check that the cache is reachable.

        Returns:
            True if the backend answered
        """
        pass

    @abstractmethod
    def get_key(self, key: str) -> Optional[str]:
        """
        Get a value.

        Args:
            key: Cache key

        Returns:
            Stored string or None if the key is absent or expired

        Raises:
            CacheError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set_key(self, key: str, value: str) -> None:
        """
        Store a value with no expiry.

        Raises:
            CacheError: If the backend cannot be written
        """
        pass

    @abstractmethod
    def set_key_with_expire(self, key: str, value: str, expire_seconds: float) -> None:
        """Store a value that disappears after expire_seconds."""
        pass

    @abstractmethod
    def delete_key(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def acquire(self, key: str, ttl_seconds: float) -> bool:
        """
        Set key only if it does not exist (a lease that expires after ttl).

        Returns:
            True if the lock was taken
        """
        pass

    def release(self, key: str) -> bool:
        """Release a lock taken with acquire()."""
        return self.delete_key(key)

    def close(self) -> None:
        """Release backend resources."""
        pass
