"""Abstract base classes for cache backends."""

import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional


class CacheBackendType(Enum):
    """Built-in cache backend types."""

    DISK = "disk"
    REMOTE = "remote"

    @classmethod
    def parse(cls, value: Any) -> Optional["CacheBackendType"]:
        """Normalize a backend identifier, returning None when it is unknown.

        Matching ignores case and surrounding whitespace. ``redis`` is kept as
        an alias of the remote backend.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        if normalized == "redis":
            return cls.REMOTE
        try:
            return cls(normalized)
        except ValueError:
            return None


def normalize_backend_name(value: Any) -> Optional[str]:
    """Resolve a backend identifier to its registry name."""
    backend_type = CacheBackendType.parse(value)
    if backend_type is not None:
        return backend_type.value
    if isinstance(value, str) and value.strip():
        return value.strip().lower()
    return None


class CacheBackend(ABC):
    """Abstract base class for cache backends.

    Reads return ``None`` on a miss, writes and deletes return ``bool``.
    Implementations never raise storage errors to the caller.
    """

    def __init__(self, name: str):
        self.name = name
        self.hits = 0
        self.misses = 0
        self.errors = 0
        self._stats_lock = threading.Lock()

    @abstractmethod
    def get(self, key: str, ttl: int = 0) -> Optional[Any]:
        """Get value from cache by key, honouring ``ttl`` where the backend needs it."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        """Set value in cache with TTL."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key from cache. True only if something was removed."""
        pass

    @abstractmethod
    def exists(self, key: str, ttl: int = 0) -> bool:
        """Check if a live entry exists for key."""
        pass

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        stats = CacheStats()
        stats.hits = self.hits
        stats.misses = self.misses
        stats.errors = self.errors
        return {**stats.to_dict(), "backend": self.name}

    def close(self) -> None:
        """Close cache backend and cleanup resources."""

    # Utility methods

    def _record_hit(self) -> None:
        """Record cache hit."""
        with self._stats_lock:
            self.hits += 1

    def _record_miss(self) -> None:
        """Record cache miss."""
        with self._stats_lock:
            self.misses += 1

    def _record_error(self) -> None:
        """Record cache error."""
        with self._stats_lock:
            self.errors += 1

    def get_hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0


class CacheStats:
    """Cache statistics data structure."""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.errors = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "errors": self.errors,
            "hit_rate_percent": self.hit_rate,
        }

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0
