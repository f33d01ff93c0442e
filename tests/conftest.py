"""Pytest configuration and fixtures for keycache tests."""

import os
import time
import pytest
from typing import Any, Dict, Optional, Tuple

# Add the project root to the Python path
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from keycache.cache import (  # noqa: E402
    CacheFacade,
    FileCacheBackend,
    Principal,
    RedisCacheBackend,
)


class FakeRedisClient:
    """In-memory stand-in for the subset of ``redis.Redis`` the backend uses."""

    def __init__(self):
        self.store: Dict[str, Tuple[bytes, Optional[float]]] = {}
        self.set_calls = []
        self.closed = False

    def _live(self, name: str) -> bool:
        entry = self.store.get(name)
        if entry is None:
            return False
        expires_at = entry[1]
        if expires_at is not None and time.time() >= expires_at:
            del self.store[name]
            return False
        return True

    def set(self, name: str, value: bytes, ex: Optional[int] = None) -> bool:
        self.set_calls.append((name, ex))
        self.store[name] = (value, time.time() + ex if ex else None)
        return True

    def get(self, name: str) -> Optional[bytes]:
        if not self._live(name):
            return None
        return self.store[name][0]

    def delete(self, *names: str) -> int:
        removed = 0
        for name in names:
            if self._live(name):
                del self.store[name]
                removed += 1
        return removed

    def exists(self, name: str) -> int:
        return 1 if self._live(name) else 0

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        self.closed = True


class PrincipalHolder:
    """Mutable identity collaborator; tests switch ``current`` between users."""

    def __init__(self, principal: Optional[Principal] = None):
        self.current = principal

    def __call__(self) -> Optional[Principal]:
        return self.current


@pytest.fixture
def cache_dir(tmp_path):
    """Directory for disk cache files."""
    return tmp_path / "cache"


@pytest.fixture
def file_cache(cache_dir):
    """Disk backend rooted in a temporary directory."""
    cache = FileCacheBackend(cache_dir=str(cache_dir), name="test_disk")
    yield cache
    cache.close()


@pytest.fixture
def fake_redis():
    """In-memory redis client double."""
    return FakeRedisClient()


@pytest.fixture
def redis_cache(fake_redis):
    """Remote backend over the fake redis client."""
    return RedisCacheBackend(client=fake_redis, key_prefix="test:", name="test_remote")


@pytest.fixture
def principal():
    """Identity collaborator logged in as user 42."""
    return PrincipalHolder(Principal(user_id="42"))


@pytest.fixture
def facade(file_cache, redis_cache, principal):
    """Facade over both test backends with disk as default."""
    cache = CacheFacade(
        {"disk": file_cache, "remote": redis_cache},
        default_backend="disk",
        principal_provider=principal,
    )
    yield cache
    cache.close()


@pytest.fixture
def age_file():
    """Set a file's mtime ``seconds`` into the past."""

    def _age(path: Path, seconds: float) -> None:
        old = time.time() - seconds
        os.utime(path, (old, old))

    return _age


@pytest.fixture
def cache_test_data() -> Dict[str, Any]:
    """Common test data for cache tests."""
    return {
        "simple_string": "test_value",
        "simple_dict": {"key": "value", "number": 42},
        "complex_dict": {
            "nested": {"data": [1, 2, 3]},
            "timestamp": "2026-01-09T10:30:00Z",
            "boolean": True,
            "float": 3.14159,
        },
        "list_data": [1, "two", {"three": 3}],
        "unicode_data": "Test with üñîçödé characters 🚀",
        "bytes_data": b"\x00\x01binary",
    }


@pytest.fixture
def temp_env():
    """Temporary KEYCACHE_* environment variables for testing."""
    original_env = os.environ.copy()

    os.environ.update(
        {
            "KEYCACHE_DEFAULT_BACKEND": "remote",
            "KEYCACHE_FILE_CACHE_DIR": "/tmp/keycache-test",
            "KEYCACHE_SCOPED_TTL_SECONDS": "600",
        }
    )

    yield

    os.environ.clear()
    os.environ.update(original_env)
