"""
API Clients for Controller and Worker

Handles HTTP communication for:
- Agent registration (controller)
- Config polling (controller)
- Config push (worker)
"""

import json
import requests
from typing import Dict, Mapping, Optional
from dataclasses import dataclass, field

API_KEY_HEADER = 'X-API-Key'


@dataclass
class APIResponse:
    """Wrapper for API responses."""
    success: bool
    status_code: int
    data: Optional[Dict] = None
    error: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def transport_failed(self) -> bool:
        """True when no HTTP response was received at all."""
        return self.status_code == 0


class BaseAPIClient:
    """HTTP client sending the shared API key with every request."""

    def __init__(self, base_url: str, api_key: str = '', timeout: float = 10.0):
        """
        Initialize API client.

        Args:
            base_url: Base URL of the service (e.g., http://controller:8080)
            api_key: Shared secret sent as X-API-Key
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout

    def _request(self, method: str, endpoint: str, **kwargs) -> APIResponse:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (e.g., /config)
            **kwargs: Additional arguments for requests

        Returns:
            APIResponse with success status and data/error
        """
        url = f"{self.base_url}{endpoint}"
        kwargs.setdefault('timeout', self.timeout)
        headers = kwargs.pop('headers', {})
        if self.api_key:
            headers[API_KEY_HEADER] = self.api_key
        kwargs['headers'] = headers

        try:
            response = requests.request(method, url, **kwargs)

            # Try to parse JSON response
            try:
                data = response.json()
            except (json.JSONDecodeError, ValueError):
                data = None

            response_headers = response.headers

            if response.ok:
                return APIResponse(
                    success=True,
                    status_code=response.status_code,
                    data=data,
                    headers=response_headers
                )
            else:
                error_msg = data.get('error') if isinstance(data, dict) else response.text
                return APIResponse(
                    success=False,
                    status_code=response.status_code,
                    data=data,
                    error=error_msg,
                    headers=response_headers
                )

        except requests.exceptions.ConnectionError as e:
            return APIResponse(
                success=False,
                status_code=0,
                error=f"Connection error: {str(e)}"
            )
        except requests.exceptions.Timeout:
            return APIResponse(
                success=False,
                status_code=0,
                error="Request timed out"
            )
        except requests.exceptions.RequestException as e:
            return APIResponse(
                success=False,
                status_code=0,
                error=f"Request failed: {str(e)}"
            )

    def health_check(self) -> bool:
        """
        Check if the service is reachable.

        Returns:
            True if service responds, False otherwise
        """
        try:
            response = requests.get(f"{self.base_url}/health", timeout=5)
            return response.ok
        except requests.exceptions.RequestException:
            return False


class ControllerAPIClient(BaseAPIClient):
    """HTTP client for the controller API."""

    def register(self, name: str) -> APIResponse:
        """
        Register this agent with the controller.

        Args:
            name: Agent display name

        Returns:
            APIResponse with agent_id, poll_url, poll_interval and version
        """
        return self._request('POST', '/register', json={'name': name})

    def get_config(self) -> APIResponse:
        """
        Fetch the latest configuration.

        Returns:
            APIResponse with poll_url and poll_interval; the version is in
            the Version response header
        """
        return self._request('GET', '/config')


class WorkerAPIClient(BaseAPIClient):
    """HTTP client for the colocated worker API."""

    def push_config(self, url: str) -> APIResponse:
        """
        Hand a new target URL to the worker.

        Args:
            url: URL the worker should hit

        Returns:
            APIResponse
        """
        return self._request('POST', '/config', json={'url': url})
