"""
Unit tests for the agent's controller and worker API clients.
"""

import os
import sys
import unittest
from unittest.mock import Mock, patch

import requests

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agent.api_client import APIResponse, ControllerAPIClient, WorkerAPIClient


def _mock_response(status_code=200, json_data=None, headers=None, text=''):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.headers = headers or {}
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError('No JSON')
    else:
        response.json.return_value = json_data
    return response


class TestControllerAPIClient(unittest.TestCase):
    """Test the controller client."""

    def setUp(self):
        self.client = ControllerAPIClient('http://controller:8080/', api_key='secret', timeout=3)

    @patch('agent.api_client.requests.request')
    def test_register(self, mock_request):
        mock_request.return_value = _mock_response(200, {
            'agent_id': 'a1', 'poll_url': 'http://a', 'poll_interval': 5, 'version': 1
        })

        response = self.client.register('agent-abc123')

        self.assertTrue(response.success)
        self.assertEqual(response.data['agent_id'], 'a1')

        args, kwargs = mock_request.call_args
        self.assertEqual(args, ('POST', 'http://controller:8080/register'))
        self.assertEqual(kwargs['json'], {'name': 'agent-abc123'})
        self.assertEqual(kwargs['headers']['X-API-Key'], 'secret')
        self.assertEqual(kwargs['timeout'], 3)

    @patch('agent.api_client.requests.request')
    def test_get_config_keeps_headers(self, mock_request):
        mock_request.return_value = _mock_response(
            200, {'poll_url': 'http://a', 'poll_interval': 5}, headers={'Version': '4'}
        )

        response = self.client.get_config()

        self.assertEqual(response.headers['Version'], '4')
        self.assertEqual(mock_request.call_args[0], ('GET', 'http://controller:8080/config'))

    @patch('agent.api_client.requests.request')
    def test_error_message_from_json(self, mock_request):
        mock_request.return_value = _mock_response(404, {'error': 'no configuration'})

        response = self.client.get_config()

        self.assertFalse(response.success)
        self.assertFalse(response.transport_failed)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.error, 'no configuration')

    @patch('agent.api_client.requests.request')
    def test_error_message_from_text(self, mock_request):
        mock_request.return_value = _mock_response(502, None, text='Bad Gateway')

        response = self.client.get_config()

        self.assertIsNone(response.data)
        self.assertEqual(response.error, 'Bad Gateway')

    @patch('agent.api_client.requests.request')
    def test_connection_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError('refused')

        response = self.client.get_config()

        self.assertFalse(response.success)
        self.assertTrue(response.transport_failed)
        self.assertIn('Connection error', response.error)

    @patch('agent.api_client.requests.request')
    def test_timeout(self, mock_request):
        mock_request.side_effect = requests.exceptions.Timeout()

        response = self.client.register('agent-abc123')

        self.assertTrue(response.transport_failed)
        self.assertEqual(response.error, 'Request timed out')

    @patch('agent.api_client.requests.request')
    def test_no_api_key_header_when_unset(self, mock_request):
        mock_request.return_value = _mock_response(200, {})

        ControllerAPIClient('http://controller:8080').get_config()

        self.assertNotIn('X-API-Key', mock_request.call_args[1]['headers'])

    @patch('agent.api_client.requests.get')
    def test_health_check(self, mock_get):
        mock_get.return_value = _mock_response(200, {'status': 'ok'})
        self.assertTrue(self.client.health_check())

        mock_get.side_effect = requests.exceptions.ConnectionError()
        self.assertFalse(self.client.health_check())


class TestWorkerAPIClient(unittest.TestCase):
    """Test the worker client."""

    @patch('agent.api_client.requests.request')
    def test_push_config(self, mock_request):
        mock_request.return_value = _mock_response(200, {'url': 'http://b'})

        response = WorkerAPIClient('http://worker:8081', api_key='secret').push_config('http://b')

        self.assertTrue(response.success)
        args, kwargs = mock_request.call_args
        self.assertEqual(args, ('POST', 'http://worker:8081/config'))
        self.assertEqual(kwargs['json'], {'url': 'http://b'})

    @patch('agent.api_client.requests.request')
    def test_push_rejected(self, mock_request):
        mock_request.return_value = _mock_response(400, {'error': 'url is empty'})

        response = WorkerAPIClient('http://worker:8081').push_config('')

        self.assertFalse(response.success)
        self.assertEqual(response.error, 'url is empty')


class TestAPIResponse(unittest.TestCase):

    def test_transport_failed(self):
        self.assertTrue(APIResponse(success=False, status_code=0).transport_failed)
        self.assertFalse(APIResponse(success=False, status_code=500).transport_failed)


if __name__ == '__main__':
    unittest.main()
