# config.py

"""
Centralized configuration for the knowledge-base embedding store.
Uses environment variables with sensible defaults.
"""

import os
import logging
import logging.config
from typing import Dict, Any, Optional

_TRUTHY = {"1", "true", "t", "yes", "y", "on", "enable", "enabled"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in _TRUTHY


def _env_optional_int(name: str) -> Optional[int]:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    value = int(raw_value)
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {raw_value!r}")
    return value


class Config:
    """Configuration management backed by environment variables."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        # Database Configuration
        self.DB_DSN = os.getenv("DB_DSN") or os.getenv("DATABASE_URL")
        self.DB_POOL_MIN_SIZE = int(os.getenv("DB_POOL_MIN_SIZE", "1"))
        self.DB_POOL_MAX_SIZE = int(os.getenv("DB_POOL_MAX_SIZE", "10"))
        self.DB_COMMAND_TIMEOUT = float(os.getenv("DB_COMMAND_TIMEOUT", "60"))
        self.DB_CONNECTION_LIFETIME = float(os.getenv("DB_CONNECTION_LIFETIME", "300"))
        self.DB_POOL_CREATE_TIMEOUT = float(os.getenv("DB_POOL_CREATE_TIMEOUT", "30"))
        self.DB_POOL_CREATE_RETRIES = int(os.getenv("DB_POOL_CREATE_RETRIES", "3"))

        # Schema sync is meant for development databases only
        self.DB_SYNC_SCHEMA = _env_bool("DB_SYNC_SCHEMA")

        # Embedding store
        self.EMBEDDINGS_TABLE = os.getenv("EMBEDDINGS_TABLE", "kb_embeddings")
        self.EMBEDDING_DIMENSION = _env_optional_int("EMBEDDING_DIMENSION")

        # Logging
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    def configure_logging(self) -> None:
        """Configure root logging based on LOG_LEVEL."""
        lvl = self.LOG_LEVEL.upper()
        if lvl not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            lvl = "INFO"

        logging.config.dictConfig({
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "std": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "std",
                    "level": lvl,
                }
            },
            "root": {"level": lvl, "handlers": ["console"]},
            "loggers": {
                "asyncpg": {"level": os.getenv("ASYNCPG_LOG_LEVEL", "WARNING")},
                "asyncio": {"level": "INFO"},
            },
        })

    def pool_config(self) -> Dict[str, Any]:
        """Keyword arguments for asyncpg.create_pool()."""
        return {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "command_timeout": self.DB_COMMAND_TIMEOUT,
            "max_inactive_connection_lifetime": self.DB_CONNECTION_LIFETIME,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {k: v for k, v in self.__dict__.items() if not k.startswith('_')}

    def __str__(self) -> str:
        """String representation of configuration, without the DSN."""
        safe = self.to_dict()
        if safe.get("DB_DSN"):
            safe["DB_DSN"] = "***"
        return str(safe)

    def get(self, key, default=None):
        """Get configuration value with optional default."""
        return getattr(self, key, default)


def load_config() -> Config:
    """Build a fresh configuration from the current environment."""
    return Config()
