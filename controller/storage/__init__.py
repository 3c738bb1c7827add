"""
Controller Storage Module

Provides abstraction layer for the configuration history with support for:
- SQLite storage (single database file)
- MongoDB storage

Usage:
    from controller.storage import get_storage_backend
    store = get_storage_backend(config)

    with store.transaction() as tx:
        latest = tx.get_latest_config()
"""

from .base import ConfigStore, ConfigTransaction
from .mongodb import MongoDBConfigStore
from .sqlite import SQLiteConfigStore


def get_storage_backend(config) -> ConfigStore:
    """
    Factory function to get the appropriate storage backend.

    Reads config.storage_backend:
    - 'sqlite' (default): SQLite database file at config.db_path
    - 'mongodb': MongoDB storage; session transactions unless
      config.mongodb_use_transactions is false (standalone mongod)

    Args:
        config: ControllerConfig instance

    Returns:
        ConfigStore instance
    """
    backend_type = (config.storage_backend or 'sqlite').lower()

    if backend_type == 'mongodb':
        return MongoDBConfigStore(
            host=config.mongodb_host,
            port=config.mongodb_port,
            database=config.mongodb_database,
            use_transactions=config.mongodb_use_transactions,
        )
    return SQLiteConfigStore(db_path=config.db_path)


__all__ = ['get_storage_backend', 'ConfigStore', 'ConfigTransaction', 'SQLiteConfigStore', 'MongoDBConfigStore']
