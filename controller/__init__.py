"""
Config Relay Controller

Authoritative service that:
- Keeps the versioned configuration history
- Registers agents
- Serves the latest configuration to polling agents
"""

__version__ = '1.0.0'
