"""Cache helpers for rendered collections.

A tiny get/set cache contract with two backends: a JSON-on-disk cache
(one file per entry, grouped by namespace) and an in-memory cache used when
disk caching is disabled. Entries carry their write time so a TTL can be
applied on read; a TTL of 0 or ``None`` never expires.
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_RESERVED_KEY_CHARS = re.compile(r"[{}()/\\@:]")


class InvalidCacheKeyError(ValueError):
    """Raised when a cache key is empty, not a string or has reserved characters."""


def validate_key(key: Any) -> str:
    if not isinstance(key, str) or not key:
        raise InvalidCacheKeyError(f"Cache key must be a non-empty string, got {key!r}")
    if _RESERVED_KEY_CHARS.search(key):
        raise InvalidCacheKeyError(f"Cache key {key!r} contains reserved characters")
    return key


def _is_expired(ts: float, ttl: int | None) -> bool:
    return bool(ttl) and time.time() - ts > ttl


class Cache(ABC):
    """Abstract cache (get/set/has/delete/clear)."""

    def __init__(self, namespace: str = "", default_ttl: int | None = None) -> None:
        self.namespace = namespace
        self.default_ttl = default_ttl

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value or ``default`` on a miss."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store a value. Returns False when the value could not be stored."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> bool:
        raise NotImplementedError

    def has(self, key: str) -> bool:
        marker = object()
        return self.get(key, marker) is not marker


class MemoryCache(Cache):
    """Dict-backed cache, lives as long as the process."""

    def __init__(self, namespace: str = "", default_ttl: int | None = None) -> None:
        super().__init__(namespace, default_ttl)
        self._entries: dict[str, dict[str, Any]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        validate_key(key)
        entry = self._entries.get(key)
        if entry is None:
            return default
        if _is_expired(entry["ts"], entry["ttl"]):
            del self._entries[key]
            return default
        return entry["value"]

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        validate_key(key)
        self._entries[key] = {
            "ts": time.time(),
            "ttl": ttl if ttl is not None else self.default_ttl,
            "value": value,
        }
        return True

    def delete(self, key: str) -> bool:
        validate_key(key)
        return self._entries.pop(key, None) is not None

    def clear(self) -> bool:
        self._entries.clear()
        return True


class FileCache(Cache):
    """JSON-file cache: ``<cache_dir>/<namespace>/<key>.json``.

    Errors while reading are treated as misses and errors while writing are
    logged, never raised to callers; caching is best-effort. Invalid keys
    still raise ``InvalidCacheKeyError``.
    """

    def __init__(
        self, cache_dir: str | Path, namespace: str = "", default_ttl: int | None = None
    ) -> None:
        super().__init__(namespace, default_ttl)
        self.cache_dir = Path(cache_dir) / namespace if namespace else Path(cache_dir)

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{validate_key(key)}.json"

    def get(self, key: str, default: Any = None) -> Any:
        cache_path = self._path(key)
        if not cache_path.exists():
            return default
        try:
            with cache_path.open("r", encoding="utf-8") as f:
                data: Any = json.load(f)
        except (OSError, ValueError):
            logger.debug("Failed to load cache entry %s", cache_path, exc_info=True)
            return default

        if not isinstance(data, dict) or "value" not in data:
            return default
        if _is_expired(float(data.get("ts", 0)), data.get("ttl")):
            logger.debug("Cache entry %s expired", cache_path)
            return default
        return data["value"]

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        cache_path = self._path(key)
        entry = {
            "ts": time.time(),
            "ttl": ttl if ttl is not None else self.default_ttl,
            "value": value,
        }
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with cache_path.open("w", encoding="utf-8") as f:
                json.dump(entry, f)
        except (OSError, TypeError, ValueError):
            logger.debug("Failed to save cache entry %s", cache_path, exc_info=True)
            return False
        logger.debug("Saved cache entry %s", cache_path)
        return True

    def delete(self, key: str) -> bool:
        cache_path = self._path(key)
        try:
            cache_path.unlink()
        except FileNotFoundError:
            return False
        except OSError:
            logger.debug("Failed to delete cache entry %s", cache_path, exc_info=True)
            return False
        return True

    def clear(self) -> bool:
        if not self.cache_dir.is_dir():
            return True
        ok = True
        for cache_path in self.cache_dir.glob("*.json"):
            try:
                cache_path.unlink()
            except OSError:
                logger.debug("Failed to delete cache entry %s", cache_path, exc_info=True)
                ok = False
        return ok


__all__ = [
    "Cache",
    "FileCache",
    "InvalidCacheKeyError",
    "MemoryCache",
    "validate_key",
]
