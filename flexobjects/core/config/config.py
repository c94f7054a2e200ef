"""Configuration management implementation.

Contains the AppConfig class implementation.
"""

import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class AppConfig:
    """Application configuration (Singleton pattern).

    Centralizes all configuration management with environment variable support.

    This class should only be instantiated once (Singleton pattern).
    Use the `config` instance from __init__.py instead of creating new instances.
    """

    _instance: "AppConfig | None" = None
    _initialized: bool

    def __new__(cls) -> "AppConfig":
        """Singleton implementation - only one instance allowed."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        if self._initialized:
            return

        self._load_from_env()
        self._initialized = True
        logger.info("Configuration initialized")

    def _load_from_env(self) -> None:
        """Internal method to load values from environment variables."""
        # Project paths
        self.project_root = self._get_project_root()
        self.storage_dir = self._resolve_path(os.getenv("FLEX_STORAGE_DIR", "user/data/flex"))
        self.templates_dir = self._resolve_path(os.getenv("FLEX_TEMPLATES_DIR", "user/templates"))
        self.cache_dir = self._resolve_path(os.getenv("FLEX_CACHE_DIR", ".cache/flex"))

        # Render cache
        self.cache_enabled = _env_flag("FLEX_CACHE_ENABLED", "true")
        self.cache_ttl_seconds = int(os.getenv("FLEX_CACHE_TTL_SECONDS", "0"))

        # Debugging wraps rendered collections in marker comments and keeps timers
        self.debug = _env_flag("FLEX_DEBUG", "false")

        # Permissions granted to anonymous visitors of the web app
        raw_access = os.getenv("FLEX_GUEST_ACCESS", "site.flex.*.read")
        self.guest_access = [p.strip() for p in raw_access.split(",") if p.strip()]

    def reload(self) -> None:
        """Force reload configuration from environment variables."""
        logger.info("Reloading configuration from environment...")
        self._load_from_env()

    def _get_project_root(self) -> Path:
        """Get project root directory. Assumes config is in flexobjects/core/config/"""
        return Path(__file__).parent.parent.parent.parent

    def _resolve_path(self, path_str: str) -> Path:
        """Resolve a configured path against the project root."""
        path = Path(path_str)
        if not path.is_absolute():
            path = self.project_root / path
        return path

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []
        if not self.storage_dir.is_dir():
            issues.append(f"Flex storage directory not found: {self.storage_dir}")
        if self.cache_ttl_seconds < 0:
            issues.append("FLEX_CACHE_TTL_SECONDS must not be negative")
        return issues

    def to_dict(self) -> dict[str, Any]:
        """Export configuration as dictionary."""
        return {
            "storage_dir": str(self.storage_dir),
            "templates_dir": str(self.templates_dir),
            "cache_dir": str(self.cache_dir),
            "cache_enabled": self.cache_enabled,
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "debug": self.debug,
            "guest_access": list(self.guest_access),
        }


__all__ = ["AppConfig"]
