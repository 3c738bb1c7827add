"""
Flat File Cache Backend

Implements the agent cache as a single JSON file.

File structure:
- <cache_dir>/agent_cache.json - {"version": "1.0", "entries": {key: {...}}}
- <cache_dir>/agent_cache.lock - flock target guarding read-modify-write

Each entry holds the value and an optional absolute expiry timestamp.
Several agent processes may share one cache_dir: every write takes an
exclusive flock on the lock file before loading, so no agent rewrites the
file from a stale copy. Writes go through a temp file and rename so a
crash never leaves a half-written cache behind.
"""

import fcntl
import json
import os
import tempfile
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ..exceptions import CacheError
from .base import CacheBackend


class FlatFileCache(CacheBackend):
    """Flat file cache implementation using a JSON file."""

    def __init__(self, cache_dir: str = '/app/cache'):
        """
        Initialize flat file cache.

        Args:
            cache_dir: Directory for the cache file
        """
        self.cache_dir = cache_dir
        self.cache_file = os.path.join(cache_dir, 'agent_cache.json')
        self.lock_file = os.path.join(cache_dir, 'agent_cache.lock')
        self._lock = threading.RLock()

        os.makedirs(cache_dir, exist_ok=True)

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold the thread lock and an exclusive flock across processes."""
        with self._lock:
            try:
                f = open(self.lock_file, 'a')
            except OSError as e:
                raise CacheError(f"Error opening lock file {self.lock_file}: {e}") from e
            with f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def _load(self) -> Dict:
        """Load all entries from file."""
        if not os.path.exists(self.cache_file):
            return {'version': '1.0', 'entries': {}}
        try:
            with open(self.cache_file, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise CacheError(f"Error loading cache file {self.cache_file}: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get('entries', {}), dict):
            raise CacheError(f"Cache file {self.cache_file} does not hold a cache mapping")
        return data

    def _write(self, data: Dict):
        """Atomically replace the cache file."""
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.cache_dir, suffix='.tmp')
        except OSError as e:
            raise CacheError(f"Error writing cache file {self.cache_file}: {e}") from e
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.cache_file)
        except (IOError, OSError, TypeError, ValueError) as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise CacheError(f"Error writing cache file {self.cache_file}: {e}") from e

    @staticmethod
    def _live_entry(entries: Dict, key: str) -> Optional[Dict]:
        entry = entries.get(key)
        if entry is None:
            return None
        expires_at = entry.get('expires_at')
        if expires_at is not None and expires_at <= time.time():
            return None
        return entry

    def ping(self) -> bool:
        return os.path.isdir(self.cache_dir) and os.access(self.cache_dir, os.W_OK)

    def get_key(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._live_entry(self._load().get('entries', {}), key)
            return entry['value'] if entry else None

    def set_key(self, key: str, value: str) -> None:
        self._store(key, value, None)

    def set_key_with_expire(self, key: str, value: str, expire_seconds: float) -> None:
        self._store(key, value, time.time() + expire_seconds)

    def _store(self, key: str, value: str, expires_at: Optional[float]):
        with self._exclusive():
            data = self._load()
            data.setdefault('entries', {})[key] = {'value': value, 'expires_at': expires_at}
            self._write(data)

    def delete_key(self, key: str) -> bool:
        with self._exclusive():
            data = self._load()
            entries = data.get('entries', {})
            if key not in entries:
                return False
            del entries[key]
            self._write(data)
            return True

    def acquire(self, key: str, ttl_seconds: float) -> bool:
        with self._exclusive():
            data = self._load()
            entries = data.setdefault('entries', {})
            if self._live_entry(entries, key) is not None:
                return False
            entries[key] = {'value': 'lock', 'expires_at': time.time() + ttl_seconds}
            self._write(data)
            return True
