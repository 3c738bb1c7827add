"""
MongoDB Cache Backend

Implements the agent cache using a MongoDB collection, so several agents
(or an agent and its restarted self on another host) can share one cache.

Collections:
- agent_cache - {_id: key, value: str, expires_at: datetime | None}

A TTL index on expires_at lets the server purge expired keys; reads also
filter on expires_at because the TTL monitor only runs periodically.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pymongo import MongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..exceptions import CacheError
from .base import CacheBackend


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MongoDBCache(CacheBackend):
    """MongoDB cache implementation."""

    def __init__(self, host: str = 'mongodb', port: int = 27017,
                 database: str = 'config_relay', collection: str = 'agent_cache'):
        """
        Initialize MongoDB cache.

        Args:
            host: MongoDB host
            port: MongoDB port
            database: Database name
            collection: Collection holding cache entries
        """
        self.client = MongoClient(
            host=host,
            port=port,
            serverSelectionTimeoutMS=5000,
            tz_aware=True
        )
        self.collection = self.client[database][collection]

        try:
            self.collection.create_index('expires_at', expireAfterSeconds=0)
        except PyMongoError as e:
            raise CacheError(f"Could not create cache indexes: {e}") from e

    @staticmethod
    def _live_filter(key: str) -> dict:
        return {
            '_id': key,
            '$or': [{'expires_at': None}, {'expires_at': {'$gt': _now()}}],
        }

    def ping(self) -> bool:
        try:
            self.client.admin.command('ping')
            return True
        except PyMongoError:
            return False

    def close(self) -> None:
        self.client.close()

    def get_key(self, key: str) -> Optional[str]:
        try:
            doc = self.collection.find_one(self._live_filter(key))
        except PyMongoError as e:
            raise CacheError(f"Error reading cache key {key}: {e}") from e
        return doc['value'] if doc else None

    def set_key(self, key: str, value: str) -> None:
        self._store(key, value, None)

    def set_key_with_expire(self, key: str, value: str, expire_seconds: float) -> None:
        self._store(key, value, _now() + timedelta(seconds=expire_seconds))

    def _store(self, key: str, value: str, expires_at: Optional[datetime]):
        try:
            self.collection.replace_one(
                {'_id': key},
                {'_id': key, 'value': value, 'expires_at': expires_at},
                upsert=True
            )
        except PyMongoError as e:
            raise CacheError(f"Error writing cache key {key}: {e}") from e

    def delete_key(self, key: str) -> bool:
        try:
            result = self.collection.delete_one({'_id': key})
        except PyMongoError as e:
            raise CacheError(f"Error deleting cache key {key}: {e}") from e
        return result.deleted_count > 0

    def acquire(self, key: str, ttl_seconds: float) -> bool:
        now = _now()
        doc = {'_id': key, 'value': 'lock', 'expires_at': now + timedelta(seconds=ttl_seconds)}
        try:
            self.collection.insert_one(doc)
            return True
        except DuplicateKeyError:
            pass
        except PyMongoError as e:
            raise CacheError(f"Error acquiring lock {key}: {e}") from e

        # Take over a lease that expired but was not purged yet
        try:
            result = self.collection.replace_one(
                {'_id': key, 'expires_at': {'$lte': now}},
                doc
            )
        except PyMongoError as e:
            raise CacheError(f"Error acquiring lock {key}: {e}") from e
        return result.modified_count == 1
