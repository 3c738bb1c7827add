"""
Agent Service

Main agent service that manages the lifecycle of a sync agent:
- Registration with the controller
- Caching of the last applied config
- Config polling with exponential backoff on errors
- Relaying config changes to the colocated worker
"""

import logging
import random
import signal
import string
import threading
from enum import Enum
from typing import Callable, Optional

from .api_client import ControllerAPIClient, WorkerAPIClient
from .cache.base import CacheBackend
from .config import AgentConfig
from .exceptions import AgentError, CacheError, RegistrationError
from .models import CachedConfig
from .sync import Backoff, ConfigSync, PollResult, parse_registration

logger = logging.getLogger(__name__)

NAME_CHARSET = string.ascii_letters + string.digits


class AgentState(Enum):
    """Agent state machine states."""
    STARTING = 'starting'
    REGISTERING = 'registering'
    REGISTERED = 'registered'
    POLLING = 'polling'
    STOPPING = 'stopping'
    ERROR = 'error'


def generate_agent_name(length: int = 6) -> str:
    """Build a display name like 'agent-a1B2c3'."""
    suffix = ''.join(random.choice(NAME_CHARSET) for _ in range(length))
    return f"agent-{suffix}"


class AgentService:
    """
    Main agent service.

    Registers once, then polls the controller forever. A poll cycle always
    completes (success or failure) before the next sleep starts.
    """

    def __init__(self, config: AgentConfig, cache: CacheBackend,
                 controller: Optional[ControllerAPIClient] = None,
                 worker: Optional[WorkerAPIClient] = None,
                 sleep: Optional[Callable[[float], None]] = None):
        """
        Initialize agent service.

        Args:
            config: Agent configuration
            cache: Cache backend for the agent's config entry
            controller: Controller API client (built from config if omitted)
            worker: Worker API client (built from config if omitted)
            sleep: Sleep function used between cycles (interruptible by stop())
        """
        self.config = config
        self.cache = cache
        self.controller = controller or ControllerAPIClient(
            config.controller_url, api_key=config.api_key, timeout=config.request_timeout
        )
        self.worker = worker or WorkerAPIClient(
            config.worker_url, api_key=config.api_key, timeout=config.request_timeout
        )

        self.backoff = Backoff(config.backoff_initial, config.backoff_max)
        self.sync: Optional[ConfigSync] = None

        self._state = AgentState.STARTING
        self._agent_id: Optional[str] = None
        self._name: Optional[str] = None
        self._stop_event = threading.Event()
        self._sleep = sleep or self._interruptible_sleep

    @property
    def state(self) -> AgentState:
        """Get current agent state."""
        return self._state

    @property
    def agent_id(self) -> Optional[str]:
        """Get agent ID (assigned after registration)."""
        return self._agent_id

    @property
    def running(self) -> bool:
        return not self._stop_event.is_set()

    def _set_state(self, state: AgentState):
        """Set agent state and log transition."""
        old_state = self._state
        self._state = state
        logger.info(f"State: {old_state.value} -> {state.value}")

    def _interruptible_sleep(self, seconds: float):
        self._stop_event.wait(seconds)

    def install_signal_handlers(self):
        """Stop the poll loop on SIGTERM/SIGINT."""
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

    def _handle_shutdown(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, initiating shutdown...")
        self.stop()

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self) -> CachedConfig:
        """
        Register with the controller and seed the cache.

        Returns:
            The initial cache entry

        Raises:
            RegistrationError: If registration or the initial cache write fails
        """
        self._set_state(AgentState.REGISTERING)
        self._name = generate_agent_name()

        logger.info(f"Registering agent '{self._name}' with {self.config.controller_url}")

        response = self.controller.register(self._name)
        if not response.success:
            self._set_state(AgentState.ERROR)
            raise RegistrationError(
                f"Registration failed (HTTP {response.status_code}): {response.error}"
            )

        try:
            entry = parse_registration(response.data)
        except ValueError as e:
            self._set_state(AgentState.ERROR)
            raise RegistrationError(str(e)) from e

        self._agent_id = entry.agent_id
        self.sync = ConfigSync(
            controller=self.controller,
            worker=self.worker,
            cache=self.cache,
            agent_id=entry.agent_id,
            default_poll_interval=self.config.default_poll_interval,
            force_push=self.config.push_on_start,
        )

        try:
            self.sync.write_cached(entry)
        except CacheError as e:
            self._set_state(AgentState.ERROR)
            raise RegistrationError(f"Failed to cache initial config: {e}") from e

        self.sync.adopt_poll_interval(entry.poll_interval)
        self._set_state(AgentState.REGISTERED)

        logger.info(
            f"Registered with ID {entry.agent_id} "
            f"(version {entry.version}, poll interval {self.sync.poll_interval}s)"
        )
        return entry

    # =========================================================================
    # Polling
    # =========================================================================

    def poll_cycle(self) -> float:
        """
        Run one poll cycle and decide how long to wait before the next.

        Failures are logged and never raised.

        Returns:
            Seconds to sleep before the next cycle
        """
        try:
            result: PollResult = self.sync.poll_once()
        except AgentError as e:
            delay = self.backoff.next_delay()
            logger.error(f"Config check failed ({type(e).__name__}): {e}; retrying in {delay:g}s")
            return delay
        except Exception as e:
            delay = self.backoff.next_delay()
            logger.exception(f"Unexpected error in poll loop: {e}; retrying in {delay:g}s")
            return delay

        self.backoff.reset()
        if result.changed:
            logger.info(
                f"Applied config version {result.version} "
                f"(poll interval {self.sync.poll_interval}s)"
            )
        return self.sync.poll_interval

    def run_forever(self):
        """
        Poll until stop() is called.

        Raises:
            RuntimeError: If called before register()
        """
        if self.sync is None:
            raise RuntimeError("run_forever() called before register()")

        self._set_state(AgentState.POLLING)

        while self.running:
            delay = self.poll_cycle()
            if not self.running:
                break
            self._sleep(delay)

    def start(self):
        """
        Register, then poll forever.

        Raises:
            RegistrationError: If the agent cannot register
        """
        logger.info(f"Starting agent service: {self.config.to_dict()}")
        self.register()
        self.run_forever()

    def stop(self):
        """Stop the poll loop after the current cycle."""
        if self._state != AgentState.STOPPING:
            self._set_state(AgentState.STOPPING)
        self._stop_event.set()
