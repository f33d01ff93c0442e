"""Key/expiry cache with interchangeable storage backends.

Two backends are provided:
- Disk: one pickled file per key, expired lazily on read by file mtime
- Remote: redis, which expires keys natively

``CacheFacade`` dispatches raw and per-principal operations to either one.
"""

from .base import CacheBackend, CacheBackendType, CacheStats
from .facade import CacheFacade
from .file_cache import FileCacheBackend
from .identity import Principal, PrincipalProvider, principal_scope, scoped_key
from .redis_cache import RedisCacheBackend

__all__ = [
    "CacheBackend",
    "CacheBackendType",
    "CacheFacade",
    "CacheStats",
    "FileCacheBackend",
    "Principal",
    "PrincipalProvider",
    "RedisCacheBackend",
    "principal_scope",
    "scoped_key",
]
