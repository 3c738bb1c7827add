"""
Agent Configuration

Handles configuration loading from environment variables.
"""

import os
from dataclasses import dataclass
from typing import List


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('true', '1', 'yes', 'on')


@dataclass
class AgentConfig:
    """Agent service configuration."""

    # Required settings
    controller_url: str
    worker_url: str

    # Shared secret sent as X-API-Key to controller and worker
    api_key: str = ''

    # Cache settings
    cache_backend: str = 'flatfile'
    cache_dir: str = '/app/cache'
    mongodb_host: str = 'mongodb'
    mongodb_port: int = 27017
    mongodb_database: str = 'config_relay'

    # Timing settings (in seconds)
    request_timeout: float = 10.0
    default_poll_interval: int = 5
    backoff_initial: float = 1.0
    backoff_max: float = 30.0

    # Push the latest config once after registration even if unchanged
    push_on_start: bool = True

    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'AgentConfig':
        """
        Load configuration from environment variables.

        Environment variables:
            CONTROLLER_URL: Controller base URL (required)
            WORKER_URL: Colocated worker base URL (required)
            API_KEY: Shared secret for controller and worker
            CACHE_BACKEND: 'flatfile' or 'mongodb' (default flatfile)
            CACHE_DIR: Directory for the flat file cache
            MONGODB_HOST / MONGODB_PORT / MONGODB_DATABASE: MongoDB settings
            REQUEST_TIMEOUT: Seconds per HTTP request (default 10)
            DEFAULT_POLL_INTERVAL: Poll interval until the controller sets one (default 5)
            BACKOFF_INITIAL: First retry delay after a failure (default 1)
            BACKOFF_MAX: Retry delay ceiling (default 30)
            AGENT_PUSH_ON_START: Push once after registration (default true)
            LOG_LEVEL: Logging level (default INFO)
        """
        controller_url = os.environ.get('CONTROLLER_URL', '')
        worker_url = os.environ.get('WORKER_URL', '')

        if not controller_url:
            raise ValueError("CONTROLLER_URL environment variable is required")
        if not worker_url:
            raise ValueError("WORKER_URL environment variable is required")

        return cls(
            controller_url=controller_url.rstrip('/'),
            worker_url=worker_url.rstrip('/'),
            api_key=os.environ.get('API_KEY', ''),
            cache_backend=os.environ.get('CACHE_BACKEND', 'flatfile').lower(),
            cache_dir=os.environ.get('CACHE_DIR', '/app/cache'),
            mongodb_host=os.environ.get('MONGODB_HOST', 'mongodb'),
            mongodb_port=int(os.environ.get('MONGODB_PORT', '27017')),
            mongodb_database=os.environ.get('MONGODB_DATABASE', 'config_relay'),
            request_timeout=float(os.environ.get('REQUEST_TIMEOUT', '10')),
            default_poll_interval=int(os.environ.get('DEFAULT_POLL_INTERVAL', '5')),
            backoff_initial=float(os.environ.get('BACKOFF_INITIAL', '1')),
            backoff_max=float(os.environ.get('BACKOFF_MAX', '30')),
            push_on_start=_env_bool('AGENT_PUSH_ON_START', True),
            log_level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.controller_url:
            errors.append("controller_url is required")

        if not self.worker_url:
            errors.append("worker_url is required")

        if self.cache_backend not in ('flatfile', 'mongodb'):
            errors.append("cache_backend must be 'flatfile' or 'mongodb'")

        if self.request_timeout <= 0:
            errors.append("request_timeout must be greater than 0")

        if self.default_poll_interval < 1:
            errors.append("default_poll_interval must be at least 1 second")

        if self.backoff_initial <= 0:
            errors.append("backoff_initial must be greater than 0")

        if self.backoff_max < self.backoff_initial:
            errors.append("backoff_max must be at least backoff_initial")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary (excluding sensitive data)."""
        return {
            'controller_url': self.controller_url,
            'worker_url': self.worker_url,
            'cache_backend': self.cache_backend,
            'cache_dir': self.cache_dir,
            'request_timeout': self.request_timeout,
            'default_poll_interval': self.default_poll_interval,
            'backoff_initial': self.backoff_initial,
            'backoff_max': self.backoff_max,
            'push_on_start': self.push_on_start,
            'api_key_set': bool(self.api_key),
        }
