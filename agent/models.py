"""
Agent Data Models
"""

import json
from dataclasses import asdict, dataclass
from typing import Dict

from .exceptions import CacheMissError

CACHE_KEY_PREFIX = 'config_agent'


def cache_key(agent_id: str) -> str:
    """Cache key holding an agent's last applied config."""
    return f"{CACHE_KEY_PREFIX}:{agent_id}"


@dataclass(frozen=True)
class CachedConfig:
    """The last configuration an agent successfully delivered to its worker."""

    agent_id: str
    poll_url: str
    poll_interval: int
    version: int

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> 'CachedConfig':
        """
        Decode a cache value.

        Raises:
            CacheMissError: If the value is not a valid entry
        """
        try:
            data = json.loads(raw)
            return cls.from_dict(data)
        except (TypeError, ValueError, KeyError) as e:
            raise CacheMissError(f"corrupt cache entry: {e}") from e

    @classmethod
    def from_dict(cls, data: Dict) -> 'CachedConfig':
        return cls(
            agent_id=str(data['agent_id']),
            poll_url=str(data.get('poll_url') or ''),
            poll_interval=int(data.get('poll_interval') or 0),
            version=int(data['version']),
        )
