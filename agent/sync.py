"""
Config Synchronization

Compares the agent's cached config version with the controller's and
relays changes to the worker.

Delivery is at-least-once: the cache entry is only overwritten after the
worker accepted the push, so a failed push is retried on the next cycle.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .api_client import APIResponse, ControllerAPIClient, WorkerAPIClient
from .cache.base import CacheBackend
from .exceptions import CacheError, CacheMissError, ProtocolError, PushError, TransportError
from .models import CachedConfig, cache_key

logger = logging.getLogger(__name__)

VERSION_HEADER = 'Version'


@dataclass
class PollResult:
    """Result of one poll cycle."""
    changed: bool
    version: int
    pushed_url: Optional[str] = None
    previous_version: Optional[int] = None


class Backoff:
    """
    Exponential retry delay with a fixed ceiling.

    Starting at 1s with a 30s cap the delays are 1, 2, 4, 8, 16, 30, 30, ...
    No jitter and no retry limit.
    """

    def __init__(self, initial: float = 1.0, maximum: float = 30.0):
        self.initial = initial
        self.maximum = maximum
        self._current = initial

    @property
    def current(self) -> float:
        """Delay to use for the next failure."""
        return self._current

    def next_delay(self) -> float:
        """Return the delay for this failure and grow the next one."""
        delay = self._current
        self._current = min(self._current * 2, self.maximum)
        return delay

    def reset(self):
        """Return to the initial delay after a success."""
        self._current = self.initial


class ConfigSync:
    """Relays controller config changes to the worker for one agent."""

    def __init__(self, controller: ControllerAPIClient, worker: WorkerAPIClient,
                 cache: CacheBackend, agent_id: str, default_poll_interval: int = 5,
                 force_push: bool = False):
        """
        Initialize config sync.

        Args:
            controller: Controller API client
            worker: Worker API client
            cache: Cache holding this agent's last applied config
            agent_id: This agent's ID
            default_poll_interval: Seconds between polls until the controller sets one
            force_push: Push on the next cycle even if the version is unchanged
        """
        self.controller = controller
        self.worker = worker
        self.cache = cache
        self.agent_id = agent_id
        self.default_poll_interval = default_poll_interval
        self._poll_interval: Optional[int] = None
        self._force_push = force_push

    @property
    def cache_key(self) -> str:
        return cache_key(self.agent_id)

    @property
    def poll_interval(self) -> int:
        """Seconds to wait after a successful cycle."""
        if self._poll_interval and self._poll_interval > 0:
            return self._poll_interval
        return self.default_poll_interval

    @property
    def push_pending(self) -> bool:
        """True while a forced push has not been delivered yet."""
        return self._force_push

    def adopt_poll_interval(self, poll_interval: Optional[int]):
        """Use the controller-supplied interval for subsequent cycles."""
        self._poll_interval = poll_interval

    # =========================================================================
    # Cache
    # =========================================================================

    def read_cached(self) -> CachedConfig:
        """
        Read this agent's cache entry.

        Raises:
            CacheMissError: If the entry is absent, corrupt or unreadable
        """
        try:
            raw = self.cache.get_key(self.cache_key)
        except CacheError as e:
            raise CacheMissError(f"cache read failed for {self.cache_key}: {e}") from e

        if raw is None:
            raise CacheMissError(f"no cache entry for {self.cache_key}")

        return CachedConfig.from_json(raw)

    def write_cached(self, entry: CachedConfig):
        """Overwrite this agent's cache entry."""
        self.cache.set_key(self.cache_key, entry.to_json())

    # =========================================================================
    # Controller
    # =========================================================================

    def fetch_latest(self) -> CachedConfig:
        """
        Fetch the controller's current config and version.

        Returns:
            CachedConfig stamped with this agent's ID

        Raises:
            TransportError: If the controller is unreachable
            ProtocolError: On a non-200 answer, missing Version header or bad body
        """
        response = self.controller.get_config()
        self._raise_for_transport(response, 'fetch config')

        if response.status_code != 200:
            raise ProtocolError(
                f"controller returned HTTP {response.status_code}: {response.error}"
            )

        raw_version = response.headers.get(VERSION_HEADER)
        if not raw_version:
            raise ProtocolError("version not found in response header")

        try:
            version = int(raw_version)
        except ValueError as e:
            raise ProtocolError(f"invalid version header {raw_version!r}") from e

        if not isinstance(response.data, dict):
            raise ProtocolError("controller returned a malformed config body")

        try:
            return CachedConfig(
                agent_id=self.agent_id,
                poll_url=str(response.data['poll_url']),
                poll_interval=int(response.data.get('poll_interval') or 0),
                version=version,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProtocolError(f"controller returned a malformed config body: {e}") from e

    @staticmethod
    def _raise_for_transport(response: APIResponse, action: str):
        if response.transport_failed:
            raise TransportError(f"{action} failed: {response.error}")

    # =========================================================================
    # Worker
    # =========================================================================

    def push(self, url: str):
        """
        Push a target URL to the worker.

        Raises:
            PushError: If the worker is unreachable or rejects the config
        """
        response = self.worker.push_config(url)
        if not response.success:
            raise PushError(
                f"worker rejected config (HTTP {response.status_code}): {response.error}"
            )
        logger.info(f"Pushed config to worker: {url}")

    # =========================================================================
    # Poll Cycle
    # =========================================================================

    def poll_once(self) -> PollResult:
        """
        Run one synchronization cycle.

        Returns:
            PollResult describing whether a new config was delivered

        Raises:
            CacheMissError: If this agent's cache entry is missing
            TransportError: On controller or worker communication failures
            CacheError: If the cache cannot be written after a push
        """
        cached = self.read_cached()
        latest = self.fetch_latest()

        if latest.version == cached.version and not self._force_push:
            logger.debug(f"Config is up to date (version {latest.version})")
            return PollResult(changed=False, version=latest.version)

        if latest.version == cached.version:
            logger.info(f"Pushing current config on startup (version {latest.version})")
        else:
            logger.info(
                f"Config is out of date (cached {cached.version}, controller {latest.version}), "
                f"sending new config"
            )

        self.push(latest.poll_url)

        # Only record the version once the worker holds it
        self.write_cached(latest)
        self.adopt_poll_interval(latest.poll_interval)
        self._force_push = False

        return PollResult(
            changed=latest.version != cached.version,
            version=latest.version,
            pushed_url=latest.poll_url,
            previous_version=cached.version,
        )


def parse_registration(data: Optional[dict]) -> CachedConfig:
    """
    Turn a /register response body into the initial cache entry.

    Raises:
        ValueError: If required fields are missing
    """
    if not isinstance(data, dict):
        raise ValueError("registration response is not a JSON object")
    if not data.get('agent_id'):
        raise ValueError("registration response has no agent_id")
    try:
        return CachedConfig.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"malformed registration response: {e}") from e
