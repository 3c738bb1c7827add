#!/usr/bin/env python3
"""
Agent Service Entry Point

Starts the agent service using configuration from environment variables.
"""

import logging
import sys

from common.logging_setup import setup_logging

from .cache import get_cache_backend
from .config import AgentConfig
from .exceptions import CacheError, RegistrationError
from .service import AgentService

logger = logging.getLogger('agent')


def main():
    """Main entry point for agent service."""
    try:
        config = AgentConfig.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    setup_logging(config.log_level)

    errors = config.validate()
    if errors:
        print("Configuration errors:")
        for error in errors:
            print(f"  - {error}")
        sys.exit(1)

    try:
        cache = get_cache_backend(config)
    except CacheError as e:
        logger.error(f"Failed to initialize cache: {e}")
        sys.exit(1)

    if not cache.ping():
        logger.error(f"Cache backend '{config.cache_backend}' is not reachable")
        sys.exit(1)
    logger.info("Cache connection successful")

    service = AgentService(config, cache)
    service.install_signal_handlers()

    try:
        service.start()
    except RegistrationError as e:
        logger.error(f"Fatal: {e}")
        sys.exit(1)
    finally:
        cache.close()

    logger.info("Agent service stopped")


if __name__ == '__main__':
    main()
