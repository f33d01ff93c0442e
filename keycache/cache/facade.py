"""Cache facade dispatching raw and per-user operations to a named backend."""

from typing import Any, Dict, Mapping, Optional, Union

from keycache.utils.logger import (
    configure_logging,
    key_preview,
    log_cache_operation,
    log_debug,
    log_error,
    log_info,
    log_warning,
)
from .base import CacheBackend, CacheBackendType, normalize_backend_name
from .identity import SCOPE_SEPARATOR, PrincipalProvider, principal_scope, scoped_key

BackendId = Union[str, CacheBackendType]

DEFAULT_RAW_TTL = 0
DEFAULT_SCOPED_TTL = 3600


def _is_empty(data: Any) -> bool:
    """None, empty strings/bytes and empty containers cannot be cached."""
    if data is None:
        return True
    if isinstance(data, (str, bytes, bytearray, list, tuple, dict, set, frozenset)):
        return len(data) == 0
    return False


def _valid_key(key: Any) -> bool:
    return isinstance(key, str) and key != ""


def _valid_raw_key(key: Any) -> bool:
    """Raw keys may not contain the scope separator, which every scoped key has."""
    return _valid_key(key) and SCOPE_SEPARATOR not in key


def _valid_ttl(ttl: Any) -> bool:
    return isinstance(ttl, int) and not isinstance(ttl, bool) and ttl >= 0


class CacheFacade:
    """Keyed cache over interchangeable backends.

    ``backends`` maps a backend identifier to its implementation; the two
    built-in names are ``disk`` and ``remote`` but any other name can be
    registered. Every operation takes an optional ``backend`` and falls back
    to ``default_backend``.

    Reads return ``None`` on a miss and writes return ``bool``. Nothing
    raises: invalid arguments, unknown backends, storage failures and corrupt
    entries all end up as a miss or ``False``.
    """

    def __init__(self, backends: Mapping[BackendId, CacheBackend],
                 default_backend: BackendId = CacheBackendType.DISK,
                 principal_provider: Optional[PrincipalProvider] = None,
                 raw_ttl: int = DEFAULT_RAW_TTL,
                 scoped_ttl: int = DEFAULT_SCOPED_TTL):
        self.backends: Dict[str, CacheBackend] = {}
        for backend_id, backend in backends.items():
            name = normalize_backend_name(backend_id)
            if name is None:
                raise ValueError(f"Invalid backend identifier: {backend_id!r}")
            self.backends[name] = backend

        self.default_backend = normalize_backend_name(default_backend)
        if self.default_backend not in self.backends:
            log_warning(
                "Default cache backend is not registered",
                default_backend=str(default_backend),
                registered=sorted(self.backends),
            )

        self.principal_provider = principal_provider
        self.raw_ttl = raw_ttl
        self.scoped_ttl = scoped_ttl

    @classmethod
    def from_config(cls, config=None, redis_client=None,
                    principal_provider: Optional[PrincipalProvider] = None) -> "CacheFacade":
        """Build a facade with both built-in backends from ``CacheConfig``."""
        from keycache.config import get_config
        from .file_cache import FileCacheBackend
        from .redis_cache import RedisCacheBackend

        config = config or get_config()
        configure_logging(config.log_level)
        config.log_configuration()
        for issue in config.validate_configuration():
            log_warning("Cache configuration issue", issue=issue)

        backends = {
            CacheBackendType.DISK: FileCacheBackend(cache_dir=config.file_cache_dir),
            CacheBackendType.REMOTE: RedisCacheBackend(
                redis_url=config.redis_url,
                key_prefix=config.redis_key_prefix,
                client=redis_client,
                socket_timeout=config.redis_socket_timeout,
            ),
        }
        facade = cls(
            backends,
            default_backend=config.default_backend,
            principal_provider=principal_provider,
            raw_ttl=config.raw_ttl_seconds,
            scoped_ttl=config.scoped_ttl_seconds,
        )
        log_info(
            "Cache facade initialized",
            default_backend=facade.default_backend,
            backends=sorted(facade.backends),
        )
        return facade

    # Dispatch helpers

    def _resolve(self, backend: Optional[BackendId]) -> Optional[CacheBackend]:
        """Look up a backend by identifier, None when unknown."""
        name = self.default_backend if backend is None else normalize_backend_name(backend)
        resolved = self.backends.get(name) if name is not None else None
        if resolved is None:
            log_warning("Unknown cache backend", backend=str(backend if backend is not None else name))
        return resolved

    def _current_scope(self) -> Optional[str]:
        if self.principal_provider is None:
            log_warning("Scoped cache operation without a principal provider")
            return None
        try:
            principal = self.principal_provider()
        except Exception as e:
            log_error("Principal provider failed", error=str(e))
            return None

        scope = principal_scope(principal)
        if scope is None:
            log_debug("No principal or session to scope cache key")
        return scope

    def _write(self, target: CacheBackend, key: str, data: Any, ttl: int) -> bool:
        try:
            result = bool(target.set(key, data, ttl))
            log_cache_operation("set", key, target.name, ttl=ttl, success=result)
            return result
        except Exception as e:
            log_error("Cache set failed", key=key_preview(key), backend=target.name, error=str(e))
            return False

    def _read(self, target: CacheBackend, key: str, ttl: int) -> Optional[Any]:
        try:
            result = target.get(key, ttl)
            log_cache_operation("get", key, target.name, ttl=ttl, hit=result is not None)
            return result
        except Exception as e:
            log_error("Cache get failed", key=key_preview(key), backend=target.name, error=str(e))
            return None

    # Raw keys

    def raw_set(self, key: str, data: Any, backend: Optional[BackendId] = None,
                ttl: Optional[int] = None) -> bool:
        """Store ``data`` under ``key`` exactly as given."""
        ttl = self.raw_ttl if ttl is None else ttl
        if not _valid_raw_key(key) or _is_empty(data) or not _valid_ttl(ttl):
            log_debug("Invalid cache write refused", key=key_preview(key))
            return False

        target = self._resolve(backend)
        if target is None:
            return False
        return self._write(target, key, data, ttl)

    def raw_get(self, key: str, backend: Optional[BackendId] = None,
                ttl: Optional[int] = None) -> Optional[Any]:
        """Fetch the value stored under ``key``; on disk, ``ttl`` decides freshness."""
        ttl = self.raw_ttl if ttl is None else ttl
        if not _valid_raw_key(key) or not _valid_ttl(ttl):
            log_debug("Invalid cache read refused", key=key_preview(key))
            return None

        target = self._resolve(backend)
        if target is None:
            return None
        return self._read(target, key, ttl)

    # Per-principal keys

    def store(self, key: str, data: Any, backend: Optional[BackendId] = None,
              ttl: Optional[int] = None) -> bool:
        """Store ``data`` under ``key`` scoped to the current principal."""
        ttl = self.scoped_ttl if ttl is None else ttl
        if not _valid_key(key) or _is_empty(data) or not _valid_ttl(ttl):
            log_debug("Invalid cache write refused", key=key_preview(key))
            return False

        target = self._resolve(backend)
        if target is None:
            return False

        scope = self._current_scope()
        if scope is None:
            return False
        return self._write(target, scoped_key(key, scope), data, ttl)

    def retrieve(self, key: str, backend: Optional[BackendId] = None,
                 ttl: Optional[int] = None) -> Optional[Any]:
        """Fetch the current principal's value for ``key``."""
        ttl = self.scoped_ttl if ttl is None else ttl
        if not _valid_key(key) or not _valid_ttl(ttl):
            log_debug("Invalid cache read refused", key=key_preview(key))
            return None

        target = self._resolve(backend)
        if target is None:
            return None

        scope = self._current_scope()
        if scope is None:
            return None
        return self._read(target, scoped_key(key, scope), ttl)

    # Maintenance

    def expire_key(self, key: str, backend: Optional[BackendId] = None) -> bool:
        """Delete the raw ``key`` now. True if an entry was removed."""
        if not _valid_raw_key(key):
            return False

        target = self._resolve(backend)
        if target is None:
            return False

        try:
            removed = bool(target.delete(key))
            log_cache_operation("expire", key, target.name, removed=removed)
            return removed
        except Exception as e:
            log_error("Cache expire failed", key=key_preview(key), backend=target.name, error=str(e))
            return False

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics for every registered backend."""
        stats: Dict[str, Any] = {
            "default_backend": self.default_backend,
            "backends": {},
        }
        for name, backend in self.backends.items():
            try:
                stats["backends"][name] = backend.get_stats()
            except Exception as e:
                stats["backends"][name] = {"backend": name, "error": str(e)}
        return stats

    def close(self) -> None:
        """Close all cache backends."""
        for name, backend in self.backends.items():
            try:
                backend.close()
            except Exception as e:
                log_error("Error closing cache backend", backend=name, error=str(e))
        log_info("Cache facade closed")
