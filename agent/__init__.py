"""
Config Relay Agent

A standalone service that runs next to each worker to:
- Register with the controller
- Cache the last applied configuration
- Poll the controller for new config versions
- Push changed configuration to the colocated worker
"""

__version__ = '1.0.0'
