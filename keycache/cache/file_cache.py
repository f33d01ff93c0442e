"""File-based persistent cache backend.

Each entry is one ``<key>.cache`` file holding the pickled value. The file's
modification time is the entry's write time; there is no other metadata, so
expiry is decided on read against the ttl the caller passes in.
"""

import hashlib
import os
import pickle
import re
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

from keycache.utils.logger import key_preview, log_debug, log_error, log_warning
from .base import CacheBackend

CACHE_SUFFIX = ".cache"
TEMP_PREFIX = ".tmp-"
TEMP_SUFFIX = ".part"
MAX_ENCODED_KEY_LENGTH = 200

# Existing %XX escapes are matched first so their hex digits are left alone
_UPPERCASE_OR_ESCAPE = re.compile(r"%[0-9A-F]{2}|[A-Z]")


def _escape_uppercase(match: "re.Match") -> str:
    text = match.group(0)
    if len(text) == 3:
        return text
    return f"%{ord(text):02X}"


def encode_key(key: str) -> str:
    """Map a cache key to a file name stem that cannot leave the cache directory.

    Keys are percent-encoded with no safe characters, and a leading dot is
    encoded too so the stem never names ``.``/``..`` or a hidden temp file.
    Uppercase letters are escaped as well, so stems that differ only in case
    stay distinct on case-insensitive filesystems. Long stems are replaced by
    ``#<sha256>``; ``#`` never survives encoding, so hashed and plain stems
    cannot collide.
    """
    encoded = _UPPERCASE_OR_ESCAPE.sub(_escape_uppercase, quote(key, safe=""))
    if encoded.startswith("."):
        encoded = "%2E" + encoded[1:]
    if len(encoded) > MAX_ENCODED_KEY_LENGTH:
        return "#" + hashlib.sha256(key.encode("utf-8")).hexdigest()
    return encoded


class FileCacheBackend(CacheBackend):
    """Disk cache backend with lazy, read-time expiration."""

    def __init__(self, cache_dir: str = ".keycache", name: str = "disk"):
        super().__init__(name)
        self.cache_dir = Path(cache_dir)
        self._ensure_dir()

    def _ensure_dir(self) -> bool:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            log_error("Cache directory unavailable", cache_dir=str(self.cache_dir), error=str(e))
            return False

    def _get_file_path(self, key: str) -> Path:
        """Get file path for cache key."""
        return self.cache_dir / f"{encode_key(key)}{CACHE_SUFFIX}"

    def _is_expired(self, mtime: float, ttl: int) -> bool:
        """An entry is expired when it was written before ``now - ttl``. ttl <= 0 never expires."""
        if ttl <= 0:
            return False
        return mtime < time.time() - ttl

    def _evict(self, file_path: Path) -> None:
        try:
            file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            log_warning("Failed to evict cache file", path=file_path.name, error=str(e))

    def get(self, key: str, ttl: int = 0) -> Optional[Any]:
        """Get value from file cache, deleting it first if it outlived ``ttl``."""
        file_path = self._get_file_path(key)
        try:
            mtime = file_path.stat().st_mtime
        except FileNotFoundError:
            self._record_miss()
            return None
        except OSError as e:
            log_error("Cache stat failed", key=key_preview(key), error=str(e))
            self._record_error()
            self._record_miss()
            return None

        if self._is_expired(mtime, ttl):
            log_debug("Cache entry expired", key=key_preview(key), ttl=ttl)
            self._evict(file_path)
            self._record_miss()
            return None

        try:
            payload = file_path.read_bytes()
        except FileNotFoundError:
            # Removed between stat and read
            self._record_miss()
            return None
        except OSError as e:
            log_error("Cache read failed", key=key_preview(key), error=str(e))
            self._record_error()
            self._record_miss()
            return None

        try:
            data = pickle.loads(payload)  # nosec B301
        except Exception as e:
            log_warning("Corrupt cache entry evicted", key=key_preview(key), error=str(e))
            self._evict(file_path)
            self._record_error()
            self._record_miss()
            return None

        self._record_hit()
        return data

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        """Write value atomically: temp file in the same directory, then rename.

        ``ttl`` is not stored; the file mtime is what later reads compare against.
        """
        try:
            payload = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
        except Exception as e:
            log_error("Cache value is not serializable", key=key_preview(key), error=str(e))
            self._record_error()
            return False

        if not self._ensure_dir():
            self._record_error()
            return False

        file_path = self._get_file_path(key)
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=self.cache_dir,
                prefix=TEMP_PREFIX,
                suffix=TEMP_SUFFIX,
                delete=False,
            ) as temp_file:
                temp_path = temp_file.name
                temp_file.write(payload)
                temp_file.flush()
                os.fsync(temp_file.fileno())

            os.replace(temp_path, file_path)
            return True

        except OSError as e:
            if temp_path is not None:
                try:
                    os.remove(temp_path)
                except OSError:
                    pass
            log_error("Cache write failed", key=key_preview(key), error=str(e))
            self._record_error()
            return False

    def delete(self, key: str) -> bool:
        """Delete key from file cache."""
        file_path = self._get_file_path(key)
        try:
            file_path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            log_error("Cache delete failed", key=key_preview(key), error=str(e))
            self._record_error()
            return False

    def exists(self, key: str, ttl: int = 0) -> bool:
        """Check if a fresh entry exists for key, expiring it if it is stale."""
        file_path = self._get_file_path(key)
        try:
            mtime = file_path.stat().st_mtime
        except OSError:
            return False

        if self._is_expired(mtime, ttl):
            self._evict(file_path)
            return False
        return True

    def get_stats(self) -> Dict[str, Any]:
        """Get file cache statistics."""
        stats = super().get_stats()
        entries = 0
        disk_usage = 0
        try:
            for file_path in self.cache_dir.glob(f"*{CACHE_SUFFIX}"):
                try:
                    disk_usage += file_path.stat().st_size
                    entries += 1
                except OSError:
                    continue
        except OSError:
            pass

        stats.update(
            {
                "cache_dir": str(self.cache_dir),
                "entries": entries,
                "disk_usage_bytes": disk_usage,
            }
        )
        return stats
