"""
Agent Exceptions

Registration errors are fatal for the agent process. Everything else is
raised by a single poll cycle and turned into a backoff-and-retry decision
by the poll loop.
"""


class AgentError(Exception):
    """Base class for agent errors."""


class RegistrationError(AgentError):
    """Raised when the agent cannot obtain an identity from the controller."""


class CacheError(AgentError):
    """Raised when the cache backend fails to read or write."""


class CacheMissError(AgentError):
    """Raised when the agent's cache entry is absent or cannot be decoded."""


class TransportError(AgentError):
    """Raised on network failures talking to the controller or worker."""


class ProtocolError(TransportError):
    """Raised when the controller answers with an unusable response."""


class PushError(TransportError):
    """Raised when the worker rejects or fails a config push."""
