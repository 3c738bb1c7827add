"""
Agent Cache Module

Provides the key-value cache holding each agent's last applied config:
- Flat file cache (JSON file, single host)
- MongoDB cache (shared)

Usage:
    from agent.cache import get_cache_backend
    cache = get_cache_backend(config)
    cache.set_key('config_agent:<id>', entry.to_json())
"""

from .base import CacheBackend
from .flatfile import FlatFileCache
from .mongodb import MongoDBCache


def get_cache_backend(config) -> CacheBackend:
    """
    Factory function to get the appropriate cache backend.

    Reads config.cache_backend:
    - 'flatfile' (default): JSON file in config.cache_dir
    - 'mongodb': MongoDB collection

    Args:
        config: AgentConfig instance

    Returns:
        CacheBackend instance
    """
    backend_type = (config.cache_backend or 'flatfile').lower()

    if backend_type == 'mongodb':
        return MongoDBCache(
            host=config.mongodb_host,
            port=config.mongodb_port,
            database=config.mongodb_database,
        )
    return FlatFileCache(cache_dir=config.cache_dir)


__all__ = ['get_cache_backend', 'CacheBackend', 'FlatFileCache', 'MongoDBCache']
