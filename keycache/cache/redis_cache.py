"""Redis-based remote cache backend.

A thin adapter: redis expires keys natively, so this module only prefixes
keys, pickles values and turns client failures into misses.
"""

import pickle
from typing import Any, Dict, Optional

import redis

from keycache.utils.logger import key_preview, log_error, log_info, log_warning, sanitize_text
from .base import CacheBackend


class RedisCacheBackend(CacheBackend):
    """Remote cache backend over a ``redis.Redis`` compatible client."""

    def __init__(self, redis_url: str = "redis://localhost:6379/0",
                 key_prefix: str = "keycache:", name: str = "remote",
                 client: Optional[Any] = None, socket_timeout: float = 2.0):
        super().__init__(name)
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.socket_timeout = socket_timeout
        self.redis = client
        self._injected = client is not None
        self._connected = client is not None

    def _client(self):
        """Return the client, building it from the URL on first use."""
        if self.redis is None:
            if self._injected:
                # Never swap a closed injected client for one built from the URL
                raise redis.ConnectionError("Injected redis client has been closed")
            # from_url does not connect; the first command does
            self.redis = redis.Redis.from_url(
                self.redis_url,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
            )
            log_info("Redis cache client created", redis_url=self.redis_url)
        return self.redis

    def _make_key(self, key: str) -> str:
        """Create Redis key with prefix."""
        return f"{self.key_prefix}{key}"

    def get(self, key: str, ttl: int = 0) -> Optional[Any]:
        """Get value from Redis cache. ``ttl`` is unused: redis expires keys itself."""
        redis_key = self._make_key(key)
        try:
            data_bytes = self._client().get(redis_key)
            self._connected = True
        except (redis.RedisError, OSError) as e:
            self._connected = False
            log_error("Redis get failed", key=key_preview(key), error=str(e))
            self._record_error()
            self._record_miss()
            return None

        if data_bytes is None:
            self._record_miss()
            return None

        try:
            data = pickle.loads(data_bytes)  # nosec B301
        except Exception as e:
            log_warning("Corrupt redis entry evicted", key=key_preview(key), error=str(e))
            try:
                self._client().delete(redis_key)
            except (redis.RedisError, OSError):
                pass
            self._record_error()
            self._record_miss()
            return None

        self._record_hit()
        return data

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        """Set value in Redis cache. ttl 0 stores the key without expiry."""
        try:
            data_bytes = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        except Exception as e:
            log_error("Cache value is not serializable", key=key_preview(key), error=str(e))
            self._record_error()
            return False

        try:
            if ttl > 0:
                result = self._client().set(self._make_key(key), data_bytes, ex=ttl)
            else:
                result = self._client().set(self._make_key(key), data_bytes)
            self._connected = True
            return bool(result)

        except (redis.RedisError, OSError) as e:
            self._connected = False
            log_error("Redis set failed", key=key_preview(key), error=str(e))
            self._record_error()
            return False

    def delete(self, key: str) -> bool:
        """Delete key from Redis cache."""
        try:
            removed = self._client().delete(self._make_key(key))
            self._connected = True
            return bool(removed)

        except (redis.RedisError, OSError) as e:
            self._connected = False
            log_error("Redis delete failed", key=key_preview(key), error=str(e))
            self._record_error()
            return False

    def exists(self, key: str, ttl: int = 0) -> bool:
        """Check if key exists in Redis cache."""
        try:
            return self._client().exists(self._make_key(key)) > 0

        except (redis.RedisError, OSError) as e:
            self._connected = False
            log_error("Redis exists check failed", key=key_preview(key), error=str(e))
            self._record_error()
            return False

    def ping(self) -> bool:
        """Check that the redis server answers."""
        try:
            self._connected = bool(self._client().ping())
        except (redis.RedisError, OSError):
            self._connected = False
        return self._connected

    def get_stats(self) -> Dict[str, Any]:
        """Get Redis cache statistics."""
        stats = super().get_stats()
        stats.update(
            {
                "redis_url": sanitize_text(self.redis_url),
                "connected": self._connected,
                "key_prefix": self.key_prefix,
            }
        )
        return stats

    def close(self) -> None:
        """Close Redis connection."""
        if self.redis is not None:
            try:
                self.redis.close()
            except (redis.RedisError, OSError):
                pass
            finally:
                self.redis = None
                self._connected = False
