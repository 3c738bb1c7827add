"""
Controller HTTP API

Routes:
- POST /register        Register an agent, return its ID and the current config
- GET  /config          Latest config; the version travels in the Version header
- POST /config          Propose new settings (adds a version only on change)
- GET  /config/history  Version history, newest first
- GET  /agents          Registered agents
- GET  /health          Liveness probe (no API key)
"""

import logging

from flask import Flask, jsonify, request

from common.auth import init_api_key_auth

from .authority import ConfigAuthority
from .exceptions import NotFoundError, StoreError
from .storage import get_storage_backend
from .validation import ValidationError, validate_register_request, validate_update_request

logger = logging.getLogger(__name__)

VERSION_HEADER = 'Version'


def create_app(authority: ConfigAuthority, api_key: str = '') -> Flask:
    """
    Build the controller Flask application.

    Args:
        authority: ConfigAuthority serving the requests
        api_key: Shared secret expected in X-API-Key

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    app.config['AUTHORITY'] = authority

    init_api_key_auth(app, api_key)

    def store_failure(e: StoreError):
        logger.error(f"Store error on {request.method} {request.path}: {e}")
        return jsonify({'error': 'storage failure'}), 500

    @app.route('/health', methods=['GET'])
    def health():
        healthy = authority.store.ping()
        status = 200 if healthy else 503
        return jsonify({'status': 'ok' if healthy else 'degraded'}), status

    @app.route('/register', methods=['POST'])
    def register():
        """
        Register a new agent.

        Expected JSON body:
        {
            "name": "agent-a1B2c3"
        }

        Returns:
        {
            "agent_id": "uuid",
            "poll_url": "http://target",
            "poll_interval": 5,
            "version": 3
        }
        """
        try:
            name = validate_register_request(request.get_json(silent=True))
        except ValidationError as e:
            return jsonify({'error': e.message, 'field': e.field}), 400

        try:
            agent, config = authority.register_agent(name)
        except NotFoundError as e:
            return jsonify({'error': str(e)}), 404
        except StoreError as e:
            return store_failure(e)

        return jsonify({
            'agent_id': agent.agent_id,
            'poll_url': config.url,
            'poll_interval': config.poll_interval,
            'version': config.version,
        })

    @app.route('/config', methods=['GET'])
    def get_config():
        try:
            config = authority.get_latest_config()
        except NotFoundError as e:
            return jsonify({'error': str(e)}), 404
        except StoreError as e:
            return store_failure(e)

        response = jsonify({
            'poll_url': config.url,
            'poll_interval': config.poll_interval,
        })
        response.headers[VERSION_HEADER] = str(config.version)
        return response

    @app.route('/config', methods=['POST'])
    def update_config():
        """
        Propose new settings.

        Expected JSON body:
        {
            "url": "http://target",
            "poll_interval": 10
        }
        """
        try:
            url, poll_interval = validate_update_request(request.get_json(silent=True))
        except ValidationError as e:
            return jsonify({'error': e.message, 'field': e.field}), 400

        try:
            config, changed = authority.update_config(url, poll_interval)
        except StoreError as e:
            return store_failure(e)

        return jsonify({'version': config.version, 'changed': changed})

    @app.route('/config/history', methods=['GET'])
    def config_history():
        limit = request.args.get('limit', 50, type=int)
        limit = max(1, min(limit, 1000))
        try:
            versions = authority.get_config_history(limit=limit)
        except StoreError as e:
            return store_failure(e)
        return jsonify({'versions': [v.to_dict() for v in versions]})

    @app.route('/agents', methods=['GET'])
    def list_agents():
        try:
            agents = authority.list_agents()
        except StoreError as e:
            return store_failure(e)
        return jsonify({'agents': [a.to_dict() for a in agents]})

    return app


def build_app(config) -> Flask:
    """
    Wire storage, authority and routes from a ControllerConfig.

    Seeds version 1 from config.initial_url when the history is empty.
    """
    store = get_storage_backend(config)
    authority = ConfigAuthority(store)

    if config.initial_url:
        authority.seed_config(config.initial_url, config.initial_poll_interval)

    return create_app(authority, api_key=config.api_key)
