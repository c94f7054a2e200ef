"""Lightweight index over a flex directory.

The index holds one metadata dict per object (storage key, key, timestamp)
so checksums and key lists can be computed without reading object data.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from flexobjects.core.objects.collection import ObjectCollection

if TYPE_CHECKING:
    from flexobjects.core.directory import FlexDirectory
    from flexobjects.core.objects.flex_collection import FlexCollection


class FlexIndex(ObjectCollection):
    """Collection of object metadata keyed by the index key field."""

    def __init__(
        self,
        entries: Mapping[Any, dict[str, Any]] | None = None,
        directory: FlexDirectory | None = None,
        key_field: str | None = None,
    ) -> None:
        super().__init__(entries, key=directory.get_type() if directory else None)
        self._directory = directory
        self._key_field = key_field or "storage_key"

    def create_from(self, elements: Mapping[Any, Any]) -> FlexIndex:
        return type(self)(elements, self._directory, self._key_field)

    def get_flex_directory(self) -> FlexDirectory | None:
        return self._directory

    def get_key_field(self) -> str:
        return self._key_field

    def get_storage_keys(self) -> dict[Any, str]:
        return {key: meta["storage_key"] for key, meta in self.items()}

    def get_timestamps(self) -> dict[Any, int]:
        return {key: meta.get("timestamp", 0) for key, meta in self.items()}

    def get_cache_checksum(self) -> str:
        return hashlib.sha1(json.dumps(self.get_timestamps()).encode("utf-8")).hexdigest()

    def load_collection(self) -> FlexCollection:
        """Load the indexed objects, keyed like the index."""
        if self._directory is None:
            raise RuntimeError("Index is not attached to a directory")
        collection = self._directory.get_collection(list(self.get_storage_keys().values()))
        return collection.with_key_field(self._key_field)


__all__ = ["FlexIndex"]
