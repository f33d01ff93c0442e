"""Configuration management using Pydantic BaseSettings.

Settings are read from ``KEYCACHE_*`` environment variables (or a ``.env``
file) and validated once at construction time.
"""
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

VALID_BACKENDS = ("disk", "remote", "redis")


class CacheConfig(BaseSettings):
    """Cache settings: default backend, disk location and redis connection."""

    default_backend: str = Field("disk", description="Backend used when a call does not name one: disk or remote")
    file_cache_dir: str = Field(".keycache", description="Directory holding <key>.cache files")
    redis_url: str = Field("redis://localhost:6379/0", description="Redis connection URL")
    redis_key_prefix: str = Field("keycache:", description="Prefix applied to every redis key")
    redis_socket_timeout: float = Field(2.0, ge=0.1, le=60.0, description="Redis socket timeout in seconds")
    raw_ttl_seconds: int = Field(0, ge=0, le=31536000, description="Default TTL for raw get/set (0 = no expiry)")
    scoped_ttl_seconds: int = Field(3600, ge=0, le=31536000, description="Default TTL for per-user store/retrieve")

    # Logging
    log_level: str = Field("INFO", description="Logging level")

    model_config = {
        "env_prefix": "KEYCACHE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }

    @field_validator('default_backend')
    @classmethod
    def validate_default_backend(cls, v):
        normalized = v.strip().lower()
        if normalized not in VALID_BACKENDS:
            raise ValueError(f'Invalid cache backend: {v}. Valid options: {list(VALID_BACKENDS)}')
        return normalized

    @field_validator('log_level')
    @classmethod
    def validate_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Invalid log level: {v}. Valid options: {valid_levels}')
        return v.upper()

    def validate_configuration(self) -> List[str]:
        """Validate the complete configuration and return any issues."""
        issues = []

        if not self.file_cache_dir.strip():
            issues.append("KEYCACHE_FILE_CACHE_DIR must not be empty")

        if not self.redis_url.startswith(("redis://", "rediss://", "unix://")):
            issues.append("KEYCACHE_REDIS_URL must be a valid Redis URL (redis://...)")

        if not self.redis_key_prefix:
            issues.append("KEYCACHE_REDIS_KEY_PREFIX is empty, keys may collide with other redis users")

        if 0 < self.scoped_ttl_seconds < 60:
            issues.append("KEYCACHE_SCOPED_TTL_SECONDS is very low, may cause frequent cache misses")

        return issues

    def log_configuration(self) -> None:
        """Log the current configuration (sanitized)."""
        from keycache.utils.logger import log_info

        log_info("Configuration loaded",
                 default_backend=self.default_backend,
                 file_cache_dir=self.file_cache_dir,
                 redis_url=self.redis_url,
                 redis_key_prefix=self.redis_key_prefix,
                 raw_ttl_seconds=self.raw_ttl_seconds,
                 scoped_ttl_seconds=self.scoped_ttl_seconds,
                 log_level=self.log_level)


# Global configuration instance (lazy loading)
_config = None


def get_config() -> CacheConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = CacheConfig()
    return _config


def reload_config() -> CacheConfig:
    """Reload configuration from environment variables."""
    global _config
    _config = CacheConfig()
    return _config
