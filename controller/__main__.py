#!/usr/bin/env python3
"""
Controller Service Entry Point

Starts the controller using configuration from environment variables.
"""

import logging
import sys

from common.logging_setup import setup_logging

from .app import build_app
from .config import ControllerConfig
from .exceptions import StoreError

logger = logging.getLogger('controller')


def main():
    """Main entry point for the controller service."""
    try:
        config = ControllerConfig.from_env()
    except (ValueError, OSError) as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    setup_logging(config.log_level)

    errors = config.validate()
    if errors:
        print("Configuration errors:")
        for error in errors:
            print(f"  - {error}")
        sys.exit(1)

    logger.info(f"Controller settings: {config.to_dict()}")

    try:
        app = build_app(config)
    except StoreError as e:
        logger.error(f"Failed to initialize storage: {e}")
        sys.exit(1)

    logger.info(f"Starting controller on :{config.app_port}")
    app.run(host='0.0.0.0', port=config.app_port, threaded=True)


if __name__ == '__main__':
    main()
