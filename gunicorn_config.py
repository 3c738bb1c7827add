"""
Gunicorn Configuration for Config Relay

Serves either the controller or the worker:

    gunicorn -c gunicorn_config.py controller.wsgi:app
    gunicorn -c gunicorn_config.py worker.wsgi:app

SSL is enabled when SSL_ENABLED=true environment variable is set.
"""

import logging
import os

logger = logging.getLogger('gunicorn.error')

# Server socket
bind = os.environ.get('GUNICORN_BIND', f"0.0.0.0:{os.environ.get('APP_PORT', '8080')}")

# Worker configuration
# The worker service keeps its config in process memory, so it needs a
# single process; concurrency comes from threads.
worker_class = 'gthread'
workers = int(os.environ.get('GUNICORN_WORKERS', 1))
threads = int(os.environ.get('GUNICORN_THREADS', 8))

# Request handling
timeout = int(os.environ.get('GUNICORN_TIMEOUT', 60))
graceful_timeout = int(os.environ.get('GUNICORN_GRACEFUL_TIMEOUT', 30))
keepalive = int(os.environ.get('GUNICORN_KEEPALIVE', 2))

# SSL Configuration
ssl_enabled = os.environ.get('SSL_ENABLED', 'false').lower() in ('true', '1', 'yes')

if ssl_enabled:
    certfile = os.environ.get('SSL_CERT_PATH', '/app/config/certs/server.crt')
    keyfile = os.environ.get('SSL_KEY_PATH', '/app/config/certs/server.key')
    ca_certs = os.environ.get('SSL_CA_PATH') or None

# Logging
accesslog = os.environ.get('GUNICORN_ACCESS_LOG', '-')
errorlog = os.environ.get('GUNICORN_ERROR_LOG', '-')
loglevel = os.environ.get('GUNICORN_LOG_LEVEL', 'info')

access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Limit request sizes
limit_request_line = int(os.environ.get('GUNICORN_LIMIT_REQUEST_LINE', 4094))
limit_request_fields = int(os.environ.get('GUNICORN_LIMIT_REQUEST_FIELDS', 100))


def on_starting(server):
    """Called just before the master process is initialized."""
    scheme = 'HTTPS' if ssl_enabled else 'HTTP'
    logger.info(f"Starting Gunicorn with {scheme} on {bind}")
    if ssl_enabled:
        logger.info(f"  Certificate: {certfile}")
        logger.info(f"  Private Key: {keyfile}")


def worker_abort(worker):
    """Called when a worker times out."""
    logger.warning(f"Worker {worker.pid} was aborted (timeout)")
