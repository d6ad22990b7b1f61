"""Configuration management for famalbum.

Values come from environment variables. The admin CLI loads an optional
``.env`` file into the environment before any of these getters run.
"""

import os
from typing import Any

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_DB_PATH = "data/famalbum.db"


class Config:
    """Environment-backed configuration with typed, cached lookups."""

    def __init__(self):
        self._cache = {}

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get a configuration value from the environment.

        Args:
            key: Configuration key
            default: Default value if not found
            cast_type: Type to cast the value to (str, int, bool, float)

        Returns:
            Configuration value cast to the specified type
        """
        cache_key = f"{key}:{cast_type.__name__}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        value = os.getenv(key)
        if value is None:
            value = default

        if value is not None:
            try:
                if cast_type is bool:
                    if isinstance(value, str):
                        value = value.lower() in ("true", "1", "yes", "on")  # type: ignore[assignment]
                    else:
                        value = bool(value)  # type: ignore[assignment]
                elif cast_type is not str:
                    value = cast_type(value)
            except (ValueError, TypeError) as e:
                logger.warning("config_cast_failed", key=key, cast_type=cast_type.__name__, error=str(e))
                value = default

        self._cache[cache_key] = value
        return value

    def clear_cache(self):
        """Clear configuration cache."""
        self._cache.clear()


_config: Config | None = None


def get_config() -> Config:
    """Get the process-wide configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_env(key: str, default: Any = None, cast_type: type = str) -> Any:
    """Get an environment variable with type casting."""
    return get_config().get(key, default, cast_type)


def get_db_path() -> str:
    """Get the DuckDB database file path."""
    return str(get_env("FAMALBUM_DB_PATH", DEFAULT_DB_PATH))


def get_environment() -> str:
    """Get current environment."""
    return str(get_env("ENVIRONMENT", "development"))
