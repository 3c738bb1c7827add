"""
Controller Data Models

Records persisted by the configuration authority.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict


def _now() -> str:
    return datetime.now().isoformat()


@dataclass(frozen=True)
class ConfigRecord:
    """One immutable entry in the configuration version history."""

    url: str
    poll_interval: int
    version: int
    created_at: str = field(default_factory=_now, compare=False)

    def same_settings(self, url: str, poll_interval: int) -> bool:
        """Check whether this record already holds the given settings."""
        return self.url == url and self.poll_interval == poll_interval

    def to_dict(self) -> Dict:
        return {
            'url': self.url,
            'poll_interval': self.poll_interval,
            'version': self.version,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'ConfigRecord':
        return cls(
            url=data['url'],
            poll_interval=int(data['poll_interval']),
            version=int(data['version']),
            created_at=data.get('created_at') or _now(),
        )


@dataclass(frozen=True)
class AgentIdentity:
    """A registered agent. Never mutated once created."""

    agent_id: str
    name: str
    registered_at: str = field(default_factory=_now, compare=False)

    def to_dict(self) -> Dict:
        return {
            'agent_id': self.agent_id,
            'name': self.name,
            'registered_at': self.registered_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'AgentIdentity':
        return cls(
            agent_id=data['agent_id'],
            name=data['name'],
            registered_at=data.get('registered_at') or _now(),
        )
