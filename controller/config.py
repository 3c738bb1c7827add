"""
Controller Configuration

Handles configuration loading from environment variables and an optional
YAML config file. Values in the file take precedence over the environment.
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional

import yaml


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('true', '1', 'yes', 'on')


@dataclass
class ControllerConfig:
    """Controller service configuration."""

    # Server settings
    app_port: int = 8080
    api_key: str = ''

    # Storage settings
    storage_backend: str = 'sqlite'
    db_path: str = '/app/data/controller.db'
    mongodb_host: str = 'mongodb'
    mongodb_port: int = 27017
    mongodb_database: str = 'config_relay'
    # Multi-document transactions need a replica set or mongos
    mongodb_use_transactions: bool = True

    # Initial configuration, applied only to an empty history
    initial_url: Optional[str] = None
    initial_poll_interval: int = 30

    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'ControllerConfig':
        """
        Load configuration from environment variables.

        Environment variables:
            APP_PORT: HTTP port (default 8080)
            API_KEY: Shared secret expected in X-API-Key
            STORAGE_BACKEND: 'sqlite' or 'mongodb' (default sqlite)
            DB_PATH: SQLite database file
            MONGODB_HOST / MONGODB_PORT / MONGODB_DATABASE: MongoDB settings
            MONGODB_USE_TRANSACTIONS: Use session transactions (default true;
                set false for a standalone mongod)
            INITIAL_URL: Seed URL for an empty history
            INITIAL_POLL_INTERVAL: Seed poll interval (default 30)
            LOG_LEVEL: Logging level (default INFO)
            CONTROLLER_CONFIG_FILE: Optional YAML file overriding the above
        """
        config = cls(
            app_port=int(os.environ.get('APP_PORT', '8080')),
            api_key=os.environ.get('API_KEY', ''),
            storage_backend=os.environ.get('STORAGE_BACKEND', 'sqlite').lower(),
            db_path=os.environ.get('DB_PATH', '/app/data/controller.db'),
            mongodb_host=os.environ.get('MONGODB_HOST', 'mongodb'),
            mongodb_port=int(os.environ.get('MONGODB_PORT', '27017')),
            mongodb_database=os.environ.get('MONGODB_DATABASE', 'config_relay'),
            mongodb_use_transactions=_env_bool('MONGODB_USE_TRANSACTIONS', True),
            initial_url=os.environ.get('INITIAL_URL') or None,
            initial_poll_interval=int(os.environ.get('INITIAL_POLL_INTERVAL', '30')),
            log_level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        )

        config_file = os.environ.get('CONTROLLER_CONFIG_FILE')
        if config_file:
            config.apply_overrides(load_config_file(config_file))

        return config

    def apply_overrides(self, overrides: Dict[str, Any]):
        """
        Apply values loaded from a config file.

        Unknown keys are rejected so typos do not go unnoticed.
        """
        known = {f.name for f in fields(self)}
        for key, value in overrides.items():
            if key not in known:
                raise ValueError(f"Unknown controller config key: {key}")
            setattr(self, key, value)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if self.storage_backend not in ('sqlite', 'mongodb'):
            errors.append("storage_backend must be 'sqlite' or 'mongodb'")

        if self.storage_backend == 'sqlite' and not self.db_path:
            errors.append("db_path is required for the sqlite backend")

        if not 0 < self.app_port < 65536:
            errors.append("app_port must be between 1 and 65535")

        if self.initial_url is not None and self.initial_poll_interval <= 0:
            errors.append("initial_poll_interval must be greater than 0")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary (excluding sensitive data)."""
        return {
            'app_port': self.app_port,
            'storage_backend': self.storage_backend,
            'db_path': self.db_path,
            'mongodb_host': self.mongodb_host,
            'mongodb_port': self.mongodb_port,
            'mongodb_database': self.mongodb_database,
            'mongodb_use_transactions': self.mongodb_use_transactions,
            'initial_url': self.initial_url,
            'initial_poll_interval': self.initial_poll_interval,
            'log_level': self.log_level,
            'api_key_set': bool(self.api_key),
        }


def load_config_file(path: str) -> Dict[str, Any]:
    """
    Load a flat YAML mapping of controller settings.

    Returns:
        Dict of settings (empty for an empty file)
    """
    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Controller config file {path} must contain a mapping")
    return data
