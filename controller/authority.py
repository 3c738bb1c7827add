"""
Configuration Authority

Owns the canonical configuration and its append-only version history:
- Agent registration
- Latest config lookup
- Versioned config updates
"""

import logging
from typing import List, Optional, Tuple

from .exceptions import NotFoundError, StoreError, VersionConflictError
from .models import AgentIdentity, ConfigRecord
from .storage.base import ConfigStore

logger = logging.getLogger(__name__)


class ConfigAuthority:
    """
    Canonical configuration owner.

    Every update runs inside a single store transaction that reads the
    latest record, compares it with the proposed settings and only inserts
    version + 1 when something changed.
    """

    def __init__(self, store: ConfigStore, max_update_attempts: int = 5):
        """
        Initialize the authority.

        Args:
            store: Storage backend holding versions and agents
            max_update_attempts: Transaction retries on a version conflict
        """
        self.store = store
        self.max_update_attempts = max_update_attempts

    # =========================================================================
    # Agent Registration
    # =========================================================================

    def register_agent(self, name: str) -> Tuple[AgentIdentity, ConfigRecord]:
        """
        Register a new agent and hand it the current configuration.

        The identity is created first. If the config lookup fails afterwards
        the identity stays registered; the agent will retry.

        Args:
            name: Display name chosen by the agent

        Returns:
            Tuple of (identity, latest config record)

        Raises:
            StoreError: If the identity insert or the config read fails
            NotFoundError: If no configuration exists yet
        """
        agent = self.store.create_agent(name)
        logger.info(f"Registered agent '{name}' as {agent.agent_id}")

        config = self.get_latest_config()
        return agent, config

    def get_agent(self, agent_id: str) -> Optional[AgentIdentity]:
        """Get a registered agent by ID."""
        return self.store.get_agent(agent_id)

    def list_agents(self) -> List[AgentIdentity]:
        """Get all registered agents, newest first."""
        return self.store.get_all_agents()

    # =========================================================================
    # Config Versions
    # =========================================================================

    def get_latest_config(self) -> ConfigRecord:
        """
        Get the record with the maximum version.

        Raises:
            NotFoundError: If no configuration exists yet
            StoreError: If the store cannot be read
        """
        config = self.store.get_latest_config()
        if config is None:
            raise NotFoundError("no configuration has been created yet")
        return config

    def get_config_history(self, limit: int = 50) -> List[ConfigRecord]:
        """Get the version history, newest first."""
        return self.store.get_config_history(limit=limit)

    def update_config(self, url: str, poll_interval: int) -> Tuple[ConfigRecord, bool]:
        """
        Propose new settings.

        Args:
            url: Target URL the workers should hit
            poll_interval: Seconds between agent polls

        Returns:
            Tuple of (latest record after the update, whether a version was added)

        Raises:
            StoreError: If the transaction fails or keeps conflicting
        """
        for attempt in range(1, self.max_update_attempts + 1):
            try:
                return self._update_once(url, poll_interval)
            except VersionConflictError as e:
                logger.warning(
                    f"Config update conflict (attempt {attempt}/{self.max_update_attempts}): {e}"
                )

        raise StoreError(
            f"Config update still conflicting after {self.max_update_attempts} attempts"
        )

    def _update_once(self, url: str, poll_interval: int) -> Tuple[ConfigRecord, bool]:
        with self.store.transaction() as tx:
            latest = tx.get_latest_config()

            if latest is not None and latest.same_settings(url, poll_interval):
                logger.info(
                    f"Config already up to date (version {latest.version}, "
                    f"url={url}, poll_interval={poll_interval})"
                )
                return latest, False

            next_version = latest.version + 1 if latest else 1
            record = ConfigRecord(url=url, poll_interval=poll_interval, version=next_version)
            tx.insert_config(record)

        logger.info(f"Config updated to version {record.version} (url={url}, poll_interval={poll_interval})")
        return record, True

    def seed_config(self, url: str, poll_interval: int) -> Optional[ConfigRecord]:
        """
        Create version 1 from startup settings when the history is empty.

        Args:
            url: Initial target URL
            poll_interval: Initial poll interval

        Returns:
            The created record, or None if a history already existed
        """
        with self.store.transaction() as tx:
            if tx.get_latest_config() is not None:
                return None
            record = ConfigRecord(url=url, poll_interval=poll_interval, version=1)
            tx.insert_config(record)

        logger.info(f"Seeded initial config (url={url}, poll_interval={poll_interval})")
        return record
