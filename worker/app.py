"""
Worker HTTP API

Routes:
- POST /config   Replace the target URL (called by the agent)
- GET  /hit      Fetch the target URL and return its raw body
- GET  /health   Liveness probe (no API key)
"""

import logging

from flask import Flask, Response, jsonify, request

from common.auth import init_api_key_auth

from .exceptions import InvalidConfigError, NotConfiguredError, UpstreamError
from .target import WorkerTarget

logger = logging.getLogger(__name__)


def create_app(target: WorkerTarget, api_key: str = '') -> Flask:
    """
    Build the worker Flask application.

    Args:
        target: WorkerTarget holding the runtime config
        api_key: Shared secret expected in X-API-Key

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    app.config['TARGET'] = target

    init_api_key_auth(app, api_key)

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok', 'configured': target.configured})

    @app.route('/config', methods=['POST'])
    def update_config():
        """
        Replace the target URL.

        Expected JSON body:
        {
            "url": "http://target"
        }
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        try:
            target.push_config(data.get('url'))
        except InvalidConfigError as e:
            return jsonify({'error': str(e)}), 400

        return jsonify({'url': target.url})

    @app.route('/hit', methods=['GET'])
    def hit():
        try:
            body = target.execute()
        except NotConfiguredError:
            return jsonify({'error': 'not configured'}), 409
        except UpstreamError as e:
            result = {'error': str(e)}
            if e.status_code is not None:
                result['upstream_status'] = e.status_code
            return jsonify(result), 502

        return Response(body, status=200, mimetype='application/octet-stream')

    return app


def build_app(config) -> Flask:
    """Wire the worker target and routes from a WorkerConfig."""
    target = WorkerTarget(timeout=config.request_timeout)
    return create_app(target, api_key=config.api_key)
