"""Tests for the shared API key middleware."""
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flask import Flask, jsonify

from common.auth import init_api_key_auth, is_valid_api_key


@pytest.fixture
def client():
    """Create a minimal app protected by the middleware."""
    app = Flask(__name__)
    init_api_key_auth(app, 'secret')

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.route('/private')
    def private():
        return jsonify({'ok': True})

    return app.test_client()


class TestIsValidApiKey:

    def test_match(self):
        assert is_valid_api_key('secret', 'secret')

    def test_mismatch(self):
        assert not is_valid_api_key('secret', 'Secret')
        assert not is_valid_api_key('secret', '')
        assert not is_valid_api_key('secret', None)


class TestMiddleware:

    def test_public_route(self, client):
        assert client.get('/health').status_code == 200

    def test_private_route_requires_key(self, client):
        response = client.get('/private')
        assert response.status_code == 401
        assert response.get_json() == {'error': 'unauthorized'}

    def test_private_route_with_key(self, client):
        response = client.get('/private', headers={'X-API-Key': 'secret'})
        assert response.status_code == 200

    def test_disabled_without_key(self):
        app = Flask(__name__)
        init_api_key_auth(app, '')

        @app.route('/private')
        def private():
            return jsonify({'ok': True})

        assert app.test_client().get('/private').status_code == 200
