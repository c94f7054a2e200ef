"""Data models for flex objects and the users that access them.

Provides FlexObject and User used across the project.
"""

from __future__ import annotations

import fnmatch
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from flexobjects.core.directory import FlexDirectory

_MISSING = object()


def get_nested_value(data: Any, path: str, default: Any = None, separator: str = ".") -> Any:
    """Walk dicts (and objects exposing ``get_property``) along ``path``."""
    current = data
    for part in path.split(separator):
        if isinstance(current, dict):
            current = current.get(part, _MISSING)
        elif hasattr(current, "get_property"):
            current = current.get_property(part, _MISSING)
        elif isinstance(current, (list, tuple)) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return default
        if current is _MISSING:
            return default
    return current


def _starts_with(value: str, search: str, case_sensitive: bool) -> bool:
    if case_sensitive:
        return value.startswith(search)
    return value.lower().startswith(search.lower())


def _ends_with(value: str, search: str, case_sensitive: bool) -> bool:
    if case_sensitive:
        return value.endswith(search)
    return value.lower().endswith(search.lower())


def _contains(value: str, search: str, case_sensitive: bool) -> bool:
    if case_sensitive:
        return search in value
    return search.lower() in value.lower()


def search_value(value: Any, search: str, options: dict[str, Any] | None = None) -> float:
    """Score a single value against a search string.

    Args:
        value: Property value; only non-empty strings can match.
        search: Search string, surrounding whitespace is ignored.
        options: Optional weights for ``same_as``, ``starts_with``, ``ends_with``
            and ``contains`` matches plus a ``case_sensitive`` flag. Match kinds
            are tested in that order; ``contains`` is also tested when no
            other kind was requested.

    Returns:
        The weight of the first matching kind, or 0.
    """
    options = options or {}
    search = search.strip()
    if not search:
        return 0.0
    if not isinstance(value, str) or not value:
        return 0.0

    case_sensitive = bool(options.get("case_sensitive", False))
    tested = False

    if options.get("same_as"):
        tested = True
        same = value == search if case_sensitive else value.lower() == search.lower()
        if same:
            return float(options["same_as"])
    if options.get("starts_with"):
        tested = True
        if _starts_with(value, search, case_sensitive):
            return float(options["starts_with"])
    if options.get("ends_with"):
        tested = True
        if _ends_with(value, search, case_sensitive):
            return float(options["ends_with"])
    if (not tested or options.get("contains")) and _contains(value, search, case_sensitive):
        return float(options.get("contains") or 1)
    return 0.0


@dataclass
class User:
    """A user and the permissions granted to them.

    Attributes:
        username: Login name.
        access: Permission patterns such as ``site.flex.contacts.read``;
            shell-style wildcards (``site.flex.*.read``) are allowed.
        super_user: Super users pass every permission check.
    """

    username: str
    access: set[str] = field(default_factory=set)
    super_user: bool = False

    def authorize(self, permission: str) -> bool:
        if self.super_user:
            return True
        return any(fnmatch.fnmatchcase(permission, pattern) for pattern in self.access)


class FlexObject:
    """A content object stored in a flex directory.

    Attributes:
        key: Key of the object inside its directory.
        properties: Object data.
        storage_key: Key in the storage backend (defaults to ``key``).
        timestamp: Last modification time, epoch seconds.
        directory: Owning directory, if any.
    """

    def __init__(
        self,
        properties: dict[str, Any] | None = None,
        key: str = "",
        directory: FlexDirectory | None = None,
        storage_key: str | None = None,
        timestamp: int | None = None,
    ) -> None:
        self.properties: dict[str, Any] = dict(properties or {})
        self.key = str(key)
        self.storage_key = str(storage_key) if storage_key is not None else self.key
        self.timestamp = int(timestamp) if timestamp is not None else int(time.time())
        self.directory = directory

    def get_key(self) -> str:
        return self.key

    def get_storage_key(self) -> str:
        return self.storage_key

    def get_timestamp(self) -> int:
        return self.timestamp

    def get_flex_directory(self) -> FlexDirectory | None:
        return self.directory

    def get_type(self) -> str:
        return self.directory.get_type() if self.directory is not None else ""

    def get_flex_key(self) -> str:
        flex_type = self.get_type()
        return f"{flex_type}.{self.storage_key}" if flex_type else self.storage_key

    def has_property(self, name: str) -> bool:
        return name in self.properties

    def get_property(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    def set_property(self, name: str, value: Any) -> FlexObject:
        self.properties[name] = value
        return self

    def has_nested_property(self, path: str, separator: str = ".") -> bool:
        return get_nested_value(self.properties, path, _MISSING, separator) is not _MISSING

    def get_nested_property(self, path: str, default: Any = None, separator: str = ".") -> Any:
        return get_nested_value(self.properties, path, default, separator)

    def search(
        self,
        search: str,
        properties: str | list[str] | None = None,
        options: dict[str, Any] | None = None,
    ) -> float:
        """Return how well this object matches ``search``, from 0 to 1.

        Args:
            search: Search string.
            properties: Property name(s) to search; dotted names search nested
                values. Defaults to the directory's ``data.search.fields``,
                or to every string property when that is not configured.
            options: Match weights (see ``search_value``). Defaults to the
                directory's ``data.search.options``.
        """
        if properties is None and self.directory is not None:
            properties = self.directory.get_config("data.search.fields")
        if properties is None:
            properties = [k for k, v in self.properties.items() if isinstance(v, str)]
        elif isinstance(properties, str):
            properties = [properties]

        if options is None and self.directory is not None:
            options = self.directory.get_config("data.search.options")

        weight = 0.0
        for name in properties:
            if "." in name:
                value = self.get_nested_property(name)
            else:
                value = self.get_property(name)
            weight += search_value(value, search, options)

        return min(weight, 1.0) if weight > 0 else 0.0

    def is_authorized(
        self, action: str, scope: str | None = None, user: User | None = None
    ) -> bool | None:
        """Check ``{scope}.flex.{type}.{action}`` for the user.

        Returns:
            None when there is no user to check, otherwise the decision.
        """
        if user is None:
            return None
        permission = f"{scope or 'site'}.flex.{self.get_type() or '*'}.{action}"
        return user.authorize(permission)

    def get_meta_data(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "storage_key": self.storage_key,
            "flex_key": self.get_flex_key(),
            "timestamp": self.timestamp,
            "type": self.get_type(),
        }

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, **self.properties}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlexObject):
            return NotImplemented
        return (
            self.get_flex_key() == other.get_flex_key()
            and self.properties == other.properties
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.key!r}, type={self.get_type()!r})"
