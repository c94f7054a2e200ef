"""Storage backends for flex directories.

Provides an abstraction layer for storing and retrieving object rows, with a
folder-of-JSON-files implementation.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class FlexStorage(ABC):
    """Abstract base class for object storage (Repository pattern)."""

    @abstractmethod
    def get_existing_keys(self) -> dict[str, int]:
        """Return every storage key mapped to its modification timestamp."""
        pass

    @abstractmethod
    def has_key(self, key: str) -> bool:
        """Check if a row exists."""
        pass

    @abstractmethod
    def read_rows(self, keys: list[str]) -> dict[str, dict[str, Any] | None]:
        """Read rows by key; missing rows map to None."""
        pass

    @abstractmethod
    def write_row(self, key: str, row: dict[str, Any]) -> int:
        """Create or replace a row and return its new timestamp."""
        pass

    @abstractmethod
    def delete_row(self, key: str) -> None:
        """Delete a row by key."""
        pass

    def get_timestamp(self, key: str) -> int | None:
        return self.get_existing_keys().get(key)

    def create_rows(self, rows: dict[str, dict[str, Any]]) -> dict[str, int]:
        existing = [key for key in rows if self.has_key(key)]
        if existing:
            raise ValueError(f"Rows already exist: {', '.join(existing)}")
        return {key: self.write_row(key, row) for key, row in rows.items()}

    def update_rows(self, rows: dict[str, dict[str, Any]]) -> dict[str, int]:
        missing = [key for key in rows if not self.has_key(key)]
        if missing:
            raise KeyError(f"Rows not found: {', '.join(missing)}")
        return {key: self.write_row(key, row) for key, row in rows.items()}

    def delete_rows(self, keys: list[str]) -> None:
        for key in keys:
            self.delete_row(key)


def validate_storage_key(key: str) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ValueError("Storage key must be a non-empty string")
    if "/" in key or "\\" in key or key.startswith(".") or key == "blueprint":
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class FolderStorage(FlexStorage):
    """One JSON file per object: ``<base_dir>/<key>.json``.

    The file modification time is the object timestamp.
    """

    def __init__(self, base_dir: str | Path):
        """Initialize storage.

        Args:
            base_dir: Folder holding the rows of one directory type.
        """
        self.base_dir = Path(base_dir)
        logger.debug("Initialized FolderStorage at %s", self.base_dir)

    def get_existing_keys(self) -> dict[str, int]:
        if not self.base_dir.is_dir():
            return {}
        keys = {}
        for file_path in sorted(self.base_dir.glob("*.json")):
            try:
                key = validate_storage_key(file_path.stem)
            except ValueError:
                logger.debug("Skipping %s: not an object file", file_path.name)
                continue
            keys[key] = int(file_path.stat().st_mtime)
        return keys

    def has_key(self, key: str) -> bool:
        return self._get_file_path(key).exists()

    def get_timestamp(self, key: str) -> int | None:
        file_path = self._get_file_path(key)
        if not file_path.exists():
            return None
        return int(file_path.stat().st_mtime)

    def read_rows(self, keys: list[str]) -> dict[str, dict[str, Any] | None]:
        """Read rows from JSON files.

        Raises:
            IOError: If a file exists but cannot be parsed.
        """
        rows: dict[str, dict[str, Any] | None] = {}
        for key in keys:
            file_path = self._get_file_path(key)
            if not file_path.exists():
                rows[key] = None
                continue
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load from {file_path}: {e}")
                raise IOError(f"Load failed for {key}: {e}") from e
            if not isinstance(data, dict):
                raise IOError(f"Load failed for {key}: expected a JSON object")
            rows[key] = data
        return rows

    def write_row(self, key: str, row: dict[str, Any]) -> int:
        """Save a row to its JSON file.

        Raises:
            IOError: If save fails.
        """
        file_path = self._get_file_path(key)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(row, f, indent=2, ensure_ascii=False)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save to {file_path}: {e}")
            raise IOError(f"Save failed for {key}: {e}") from e
        logger.info(f"Saved row to {file_path}")
        return int(file_path.stat().st_mtime)

    def delete_row(self, key: str) -> None:
        """Delete a row.

        Raises:
            FileNotFoundError: If the row doesn't exist.
        """
        file_path = self._get_file_path(key)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        try:
            file_path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete {file_path}: {e}")
            raise IOError(f"Delete failed for {key}: {e}") from e
        logger.info(f"Deleted {file_path}")

    def _get_file_path(self, key: str) -> Path:
        return self.base_dir / f"{validate_storage_key(key)}.json"


__all__ = ["FlexStorage", "FolderStorage", "validate_storage_key"]
