"""
API Key Authentication

Every API route requires the shared secret in the X-API-Key header.
Health checks stay public so orchestrators can probe the services.
"""

import hmac
import logging

from flask import jsonify, request

logger = logging.getLogger(__name__)

API_KEY_HEADER = 'X-API-Key'

PUBLIC_ROUTES = {
    '/health',
}


def is_valid_api_key(expected: str, provided: str) -> bool:
    """Compare keys in constant time."""
    if provided is None:
        return False
    return hmac.compare_digest(expected.encode('utf-8'), provided.encode('utf-8'))


def init_api_key_auth(app, api_key: str):
    """
    Initialize API key middleware for the Flask app.

    Args:
        app: Flask application instance
        api_key: Expected shared secret; empty disables the check
    """
    if not api_key:
        logger.warning("API_KEY is not set - requests will not be authenticated")

    @app.before_request
    def api_key_middleware():
        """Reject requests without the shared secret."""
        if not api_key:
            return None

        if request.path in PUBLIC_ROUTES:
            return None

        if not is_valid_api_key(api_key, request.headers.get(API_KEY_HEADER)):
            return jsonify({'error': 'unauthorized'}), 401

        return None
