#!/usr/bin/env python3
"""
Worker Service Entry Point

Starts the worker service using configuration from environment variables.
"""

import logging
import sys

from common.logging_setup import setup_logging

from .app import build_app
from .config import WorkerConfig

logger = logging.getLogger('worker')


def main():
    """Main entry point for worker service."""
    try:
        config = WorkerConfig.from_env()
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

    logger.info(f"Worker settings: {config.to_dict()}")

    app = build_app(config)

    logger.info(f"Starting worker on :{config.app_port}")
    app.run(host='0.0.0.0', port=config.app_port, threaded=True)


if __name__ == '__main__':
    main()
