"""
Feature flag cache backends.

Entries are keyed ``<tenant>:<feature>`` and hold a bool. Both backends
honour a TTL and support per-key invalidation on every flag write.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from redis import Redis
from redis.exceptions import RedisError

from bedflow.core.exceptions import TransientStoreError
from bedflow.core.logging import get_logger

DEFAULT_TTL_SECONDS = 300


def cache_key(tenant_id: str, feature_name: str) -> str:
    return f"{tenant_id}:{feature_name}"


class FeatureFlagCache(ABC):
    """Cache abstraction injected into FeatureFlagService."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._logger = get_logger(self.__class__.__name__)

    @abstractmethod
    def get(self, key: str) -> Optional[bool]:
        """Cached value, or ``None`` on miss or expiry."""

    @abstractmethod
    def set(self, key: str, value: bool) -> None:
        ...

    @abstractmethod
    def invalidate(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self, tenant_id: Optional[str] = None) -> None:
        """Drop every entry, or only the entries of ``tenant_id``."""


class InMemoryFeatureFlagCache(FeatureFlagCache):
    """
    Process-local cache guarded by a lock.

    Expiry uses a monotonic timer so wall-clock jumps never extend or cut
    short an entry's lifetime.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        timer: Callable[[], float] = time.monotonic,
    ):
        super().__init__(ttl_seconds)
        self._timer = timer
        self._entries: Dict[str, Tuple[bool, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._timer() >= expires_at:
                del self._entries[key]
                self._logger.debug(f"Cache expired: {key}")
                return None
            return value

    def set(self, key: str, value: bool) -> None:
        with self._lock:
            self._entries[key] = (value, self._timer() + self.ttl_seconds)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
        self._logger.debug(f"Cache invalidated: {key}")

    def clear(self, tenant_id: Optional[str] = None) -> None:
        with self._lock:
            if tenant_id is None:
                self._entries.clear()
                return
            prefix = f"{tenant_id}:"
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisFeatureFlagCache(FeatureFlagCache):
    """
    Redis-backed cache shared across worker processes.

    Read failures degrade to a cache miss; invalidation failures raise
    TransientStoreError because a stale entry would outlive a disable.
    """

    def __init__(
        self,
        client: Redis,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        namespace: str = "bedflow:feature",
    ):
        super().__init__(ttl_seconds)
        self.client = client
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[bool]:
        try:
            raw = self.client.get(self._key(key))
        except RedisError as e:
            self._logger.warning(f"Cache get error for {key}: {e}")
            return None
        if raw is None:
            return None
        return raw == "1"

    def set(self, key: str, value: bool) -> None:
        try:
            self.client.set(self._key(key), "1" if value else "0", ex=self.ttl_seconds)
        except RedisError as e:
            self._logger.warning(f"Cache set error for {key}: {e}")

    def invalidate(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except RedisError as e:
            self._logger.error(f"Cache invalidate error for {key}: {e}")
            raise TransientStoreError(f"Could not invalidate feature cache entry {key}") from e

    def clear(self, tenant_id: Optional[str] = None) -> None:
        pattern = self._key(f"{tenant_id}:*") if tenant_id else self._key("*")
        try:
            keys = list(self.client.scan_iter(match=pattern))
            if keys:
                self.client.delete(*keys)
        except RedisError as e:
            self._logger.error(f"Cache clear error for {pattern}: {e}")
            raise TransientStoreError("Could not clear feature cache") from e
