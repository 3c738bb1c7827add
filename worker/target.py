"""
Worker Target

Holds the worker's single runtime setting (the URL to hit) and performs
the recurring work against it.

The URL lives only in memory. After a restart the worker is unconfigured
until its agent pushes again.
"""

import logging
from typing import Optional

import requests

from .exceptions import InvalidConfigError, NotConfiguredError, UpstreamError
from .rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


class WorkerTarget:
    """In-memory worker configuration guarded by a reader/writer lock."""

    def __init__(self, timeout: float = 10.0):
        """
        Initialize the worker target.

        Args:
            timeout: Seconds allowed for each outbound request
        """
        self.timeout = timeout
        self._lock = ReadWriteLock()
        self._url = ''

    @property
    def url(self) -> Optional[str]:
        """Current target URL, or None when unconfigured."""
        with self._lock.read_locked():
            return self._url or None

    @property
    def configured(self) -> bool:
        return self.url is not None

    def push_config(self, url) -> None:
        """
        Replace the target URL.

        Pushing the URL already held is a no-op in effect.

        Args:
            url: New target URL

        Raises:
            InvalidConfigError: If url is not a non-empty string
        """
        if not isinstance(url, str) or not url.strip():
            logger.error("Worker config update failed: url is empty")
            raise InvalidConfigError("url is empty")

        url = url.strip()
        with self._lock.write_locked():
            previous = self._url
            self._url = url

        if previous != url:
            logger.info(f"Worker config updated: url={url}")

    def execute(self) -> bytes:
        """
        Fetch the configured URL once.

        The shared lock is held for the whole request, so a push waits for
        in-flight hits (each bounded by the timeout) and no hit overlaps a
        push.

        Returns:
            Raw response body

        Raises:
            NotConfiguredError: If no URL has been pushed yet
            UpstreamError: On transport failure or a non-2xx answer
        """
        with self._lock.read_locked():
            url = self._url

            if not url:
                logger.error("Worker hit failed: url is empty")
                raise NotConfiguredError("worker has no configured url")

            try:
                response = requests.get(url, timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                logger.error(f"Worker hit failed to get {url}: {e}")
                raise UpstreamError(f"request to {url} failed: {e}") from e

        if not response.ok:
            logger.error(f"Worker hit got HTTP {response.status_code} from {url}")
            raise UpstreamError(
                f"{url} returned HTTP {response.status_code}",
                status_code=response.status_code
            )

        return response.content
