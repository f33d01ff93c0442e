"""keycache: a two-backend key/expiry cache facade.

Stores values on local disk or in redis behind one dispatch surface, with raw
keys or keys scoped to the current principal.
"""

from keycache.cache import (
    CacheBackend,
    CacheBackendType,
    CacheFacade,
    FileCacheBackend,
    Principal,
    RedisCacheBackend,
)

__version__ = "0.1.0"

__all__ = [
    "CacheBackend",
    "CacheBackendType",
    "CacheFacade",
    "FileCacheBackend",
    "Principal",
    "RedisCacheBackend",
    "__version__",
]
