"""
Config Relay Worker

Holds the configuration pushed by its agent and performs the configured
work (fetching the target URL) on request.
"""

__version__ = '1.0.0'
