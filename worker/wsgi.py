"""
WSGI entry point for gunicorn:

    gunicorn -c gunicorn_config.py worker.wsgi:app

Keep a single gunicorn worker process (threads are fine): the pushed
config lives in process memory.
"""

from common.logging_setup import setup_logging

from .app import build_app
from .config import WorkerConfig

config = WorkerConfig.from_env()
setup_logging(config.log_level)

app = build_app(config)
