"""
Connection-scoped cache for gcporg.

Values live as long as the owning connection. There is no expiry and no
explicit invalidation; a new connection starts with an empty cache.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


class ConnectionCache:
    """Thread-safe key/value store with single-flight population."""

    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._key_locks: Dict[str, threading.Lock] = {}

    def _key_lock(self, key: str) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
        logger.debug(f"Cached value for key '{key}'")

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """Return the cached value for key, computing and storing it on a miss.

        Concurrent callers missing the same key wait for the first one, so
        compute runs at most once per successful population. If compute
        raises, nothing is stored and the exception propagates.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            logger.debug(f"Cache hit for key '{key}'")
            return value

        with self._key_lock(key):
            # Another caller may have populated it while we waited
            value = self.get(key, _MISSING)
            if value is not _MISSING:
                logger.debug(f"Cache hit for key '{key}' after wait")
                return value

            logger.debug(f"Cache miss for key '{key}', computing")
            value = compute()
            self.set(key, value)
            return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
        logger.debug("Cleared connection cache")
