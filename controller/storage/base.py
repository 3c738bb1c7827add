"""
Config Store Base Class

Defines the interface that all controller storage backends must implement.
This ensures consistent behavior whether using SQLite or MongoDB.

Writes to the version history only happen inside a transaction obtained from
ConfigStore.transaction(), so the read-latest / compare / insert-next sequence
of an update is atomic.
"""

from abc import ABC, abstractmethod
from typing import ContextManager, List, Optional

from ..models import AgentIdentity, ConfigRecord


class ConfigTransaction(ABC):
    """
    Operations available inside a store transaction.

    A transaction is committed when the `with` block exits normally and
    rolled back when it raises.
    """

    @abstractmethod
    def get_latest_config(self) -> Optional[ConfigRecord]:
        """
        Get the record with the highest version, as seen by this transaction.

        Returns:
            Latest ConfigRecord or None if the history is empty
        """
        pass

    @abstractmethod
    def insert_config(self, record: ConfigRecord) -> None:
        """
        Append a record to the version history.

        Args:
            record: Record to insert; its version must not exist yet

        Raises:
            VersionConflictError: If the version is already taken
            StoreError: On any other persistence failure
        """
        pass


class ConfigStore(ABC):
    """
    Abstract base class for controller storage backends.

    All storage implementations (SQLite, MongoDB) must implement
    these methods to ensure consistent data access patterns.
    """

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @abstractmethod
    def ping(self) -> bool:
        """
        Check that the store is reachable.

        Returns:
            True if the backend answered
        """
        pass

    def close(self) -> None:
        """Release backend resources."""
        pass

    # =========================================================================
    # Config Version History
    # =========================================================================

    @abstractmethod
    def transaction(self) -> ContextManager[ConfigTransaction]:
        """
        Open a serialized transaction over the version history.

        Yields:
            ConfigTransaction bound to the open transaction

        Raises:
            StoreError: If the transaction cannot be started or committed
        """
        pass

    @abstractmethod
    def get_latest_config(self) -> Optional[ConfigRecord]:
        """
        Get the record with the highest version.

        Returns:
            Latest ConfigRecord or None if the history is empty
        """
        pass

    @abstractmethod
    def get_config_history(self, limit: int = 50) -> List[ConfigRecord]:
        """
        Get the version history.

        Args:
            limit: Max records to return

        Returns:
            List of records (newest first)
        """
        pass

    # =========================================================================
    # Agent Operations
    # =========================================================================

    @abstractmethod
    def create_agent(self, name: str) -> AgentIdentity:
        """
        Create a new agent identity with a fresh UUID.

        Args:
            name: Display name reported by the agent

        Returns:
            The stored AgentIdentity
        """
        pass

    @abstractmethod
    def get_agent(self, agent_id: str) -> Optional[AgentIdentity]:
        """Get a single agent by ID."""
        pass

    @abstractmethod
    def get_all_agents(self) -> List[AgentIdentity]:
        """Get all registered agents, newest first."""
        pass
