"""
Logging Setup

All services log to stderr. View with: docker compose logs <service>
"""

import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = 'INFO'):
    """
    Configure the root logger once per process.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ...)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )
