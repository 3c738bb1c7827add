"""
WSGI entry point for gunicorn:

    gunicorn -c gunicorn_config.py controller.wsgi:app
"""

from common.logging_setup import setup_logging

from .app import build_app
from .config import ControllerConfig

config = ControllerConfig.from_env()
setup_logging(config.log_level)

app = build_app(config)
