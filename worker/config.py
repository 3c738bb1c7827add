"""
Worker Configuration

Handles configuration loading from environment variables.
The target URL itself is not configured here; the agent pushes it.
"""

import os
from dataclasses import dataclass
from typing import List


@dataclass
class WorkerConfig:
    """Worker service configuration."""

    app_port: int = 8081
    api_key: str = ''

    # Timeout for each outbound hit (in seconds)
    request_timeout: float = 10.0

    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'WorkerConfig':
        """
        Load configuration from environment variables.

        Environment variables:
            APP_PORT: HTTP port (default 8081)
            API_KEY: Shared secret expected in X-API-Key
            REQUEST_TIMEOUT: Seconds per outbound hit (default 10)
            LOG_LEVEL: Logging level (default INFO)
        """
        return cls(
            app_port=int(os.environ.get('APP_PORT', '8081')),
            api_key=os.environ.get('API_KEY', ''),
            request_timeout=float(os.environ.get('REQUEST_TIMEOUT', '10')),
            log_level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        )

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not 0 < self.app_port < 65536:
            errors.append("app_port must be between 1 and 65535")

        if self.request_timeout <= 0:
            errors.append("request_timeout must be greater than 0")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary (excluding sensitive data)."""
        return {
            'app_port': self.app_port,
            'request_timeout': self.request_timeout,
            'log_level': self.log_level,
            'api_key_set': bool(self.api_key),
        }
