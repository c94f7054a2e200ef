"""Flex directory: all objects of one type plus their storage and caches."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from flexobjects.core.cache import Cache, FileCache, MemoryCache
from flexobjects.core.index import FlexIndex
from flexobjects.core.models import FlexObject, get_nested_value
from flexobjects.core.objects.flex_collection import KEY_FIELDS, FlexCollection
from flexobjects.core.storage import FlexStorage

if TYPE_CHECKING:
    from flexobjects.core.flex import Flex

logger = logging.getLogger(__name__)


class FlexDirectory:
    """Directory of flex objects of a single type.

    Args:
        flex_type: Type name, e.g. ``contacts``.
        config: Blueprint dict. Recognised keys: ``title``,
            ``data.search.fields``, ``data.search.options``, ``cache.enabled``,
            ``cache.ttl`` and ``collection`` (a FlexCollection subclass).
        storage: Storage backend holding the object rows.
        flex: Owning registry; provides the renderer, debugger and app config.
    """

    def __init__(
        self,
        flex_type: str,
        config: dict[str, Any] | None = None,
        storage: FlexStorage | None = None,
        flex: Flex | None = None,
    ) -> None:
        if not flex_type:
            raise ValueError("Directory type must not be empty")
        self.type = flex_type
        self.config: dict[str, Any] = dict(config or {})
        self.storage = storage
        self.flex = flex
        self._caches: dict[str, Cache] = {}
        self._objects: dict[str, FlexObject] = {}

    def get_type(self) -> str:
        return self.type

    def get_title(self) -> str:
        return str(self.config.get("title") or self.type.replace("_", " ").title())

    def get_config(self, path: str, default: Any = None) -> Any:
        return get_nested_value(self.config, path, default)

    def get_flex(self) -> Flex | None:
        return self.flex

    def set_flex(self, flex: Flex) -> FlexDirectory:
        self.flex = flex
        return self

    def get_storage(self) -> FlexStorage:
        if self.storage is None:
            raise RuntimeError(f"Directory {self.type} has no storage")
        return self.storage

    def get_cache(self, namespace: str | None = None) -> Cache:
        """Return the cache for ``namespace``, creating it on first use.

        Disk caching needs both the application and the blueprint to allow it;
        otherwise an in-memory cache is used.
        """
        namespace = namespace or "index"
        cache = self._caches.get(namespace)
        if cache is not None:
            return cache

        app_config = self.flex.config if self.flex is not None else None
        enabled = self.get_config("cache.enabled", True)
        ttl = self.get_config("cache.ttl")
        if ttl is None and app_config is not None:
            ttl = app_config.cache_ttl_seconds or None

        if enabled and app_config is not None and app_config.cache_enabled:
            cache = FileCache(app_config.cache_dir / self.type, namespace, ttl)
        else:
            cache = MemoryCache(namespace, ttl)
        logger.debug("Created %s for %s/%s", type(cache).__name__, self.type, namespace)
        self._caches[namespace] = cache
        return cache

    # Objects

    def create_object(
        self, data: dict[str, Any], key: str, timestamp: int | None = None
    ) -> FlexObject:
        return FlexObject(data, key, self, storage_key=key, timestamp=timestamp)

    def get_object(self, key: str) -> FlexObject | None:
        return self.load_objects([key]).get(key)

    def load_objects(self, keys: Iterable[str]) -> dict[str, FlexObject]:
        """Load objects by storage key, skipping missing rows.

        Loaded objects are kept until their storage timestamp changes.
        """
        storage = self.get_storage()
        timestamps = storage.get_existing_keys()
        keys = [key for key in keys if key in timestamps]
        wanted = [
            key
            for key in keys
            if key not in self._objects or self._objects[key].timestamp != timestamps[key]
        ]
        if wanted:
            for key, row in storage.read_rows(wanted).items():
                if row is None:
                    logger.debug("Object %s/%s not found", self.type, key)
                    self._objects.pop(key, None)
                    continue
                self._objects[key] = self.create_object(row, key, timestamps[key])
        return {key: self._objects[key] for key in keys if key in self._objects}

    def save_object(self, obj: FlexObject) -> FlexObject:
        """Persist an object and invalidate cached state."""
        storage_key = obj.get_storage_key()
        obj.timestamp = self.get_storage().write_row(storage_key, dict(obj.properties))
        obj.directory = self
        self._objects[storage_key] = obj
        self._invalidate()
        return obj

    def delete_object(self, key: str) -> None:
        self.get_storage().delete_row(key)
        self._objects.pop(key, None)
        self._invalidate()

    def _invalidate(self) -> None:
        for cache in self._caches.values():
            cache.clear()

    # Collections

    def create_collection(
        self, entries: dict[Any, FlexObject], key_field: str | None = None
    ) -> FlexCollection:
        collection_class = self.get_config("collection") or FlexCollection
        return collection_class.create_from_array(entries, self, key_field)

    def get_collection(
        self, keys: Iterable[str] | None = None, key_field: str | None = None
    ) -> FlexCollection:
        """Load a collection of objects.

        Args:
            keys: Storage keys to load; all objects when None.
            key_field: Key field of the returned collection.
        """
        if keys is None:
            keys = self.get_storage().get_existing_keys()
        collection = self.create_collection(self.load_objects(keys))
        if key_field and key_field != collection.get_key_field():
            return collection.with_key_field(key_field)
        return collection

    def get_index(
        self, keys: Iterable[Any] | None = None, key_field: str | None = None
    ) -> FlexIndex:
        """Build an index of object metadata.

        Args:
            keys: Keys (in the ``key_field`` flavour) to include; all when None.
            key_field: ``storage_key``, ``key`` or ``flex_key``.
        """
        key_field = key_field or "storage_key"
        if key_field not in KEY_FIELDS:
            raise ValueError(f"Unknown key field: {key_field}")

        entries: dict[Any, dict[str, Any]] = {}
        for storage_key, timestamp in self.get_storage().get_existing_keys().items():
            meta = {
                "storage_key": storage_key,
                "key": storage_key,
                "flex_key": f"{self.type}.{storage_key}",
                "timestamp": timestamp,
            }
            entries[meta[key_field]] = meta

        index = FlexIndex(entries, self, key_field)
        if keys is not None:
            return index.select(keys)
        return index

    def __repr__(self) -> str:
        return f"FlexDirectory(type={self.type!r})"


__all__ = ["FlexDirectory"]
