"""Ordered, keyed collection of objects.

ObjectCollection is the base of FlexCollection and FlexIndex. Every operation
that narrows or reorders a collection returns a new one through
``create_from`` so subclasses keep their own construction rules.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any

from flexobjects.core.models import get_nested_value

logger = logging.getLogger(__name__)


@dataclass
class Criteria:
    """Filter, order and window to apply with ``ObjectCollection.matching``.

    Attributes:
        where: Predicate an element must satisfy, or None for all.
        order: Mapping of field name to ``"ASC"`` or ``"DESC"``.
        offset: Number of leading elements to skip.
        limit: Maximum number of elements, None for no limit.
    """

    where: Callable[[Any], bool] | None = None
    order: dict[str, str] = field(default_factory=dict)
    offset: int = 0
    limit: int | None = None

    @classmethod
    def create(cls) -> Criteria:
        return cls()

    def order_by(self, order: dict[str, str]) -> Criteria:
        self.order = dict(order)
        return self


def parse_order(raw: str | None) -> dict[str, str]:
    """Parse ``field:dir,field2`` into an order mapping.

    A missing direction means ascending.

    Raises:
        ValueError: If a direction is not ASC or DESC.
    """
    order: dict[str, str] = {}
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        name, _, direction = part.partition(":")
        direction = (direction.strip() or "ASC").upper()
        if direction not in ("ASC", "DESC"):
            raise ValueError(f"Invalid sort direction {direction!r} for {name!r}")
        order[name.strip()] = direction
    return order


def _field_value(element: Any, name: str) -> Any:
    if "." in name:
        if hasattr(element, "get_nested_property"):
            return element.get_nested_property(name)
        return get_nested_value(element, name)
    if hasattr(element, "get_property"):
        return element.get_property(name)
    if isinstance(element, dict):
        return element.get(name)
    return getattr(element, name, None)


def _sort_values(values: list[Any]) -> list[Any]:
    """Make a column comparable: mixed numbers and strings compare as strings."""
    kinds = {
        "number" if isinstance(v, (int, float)) else type(v)
        for v in values
        if v is not None
    }
    if len(kinds) <= 1:
        return values
    return [None if v is None else str(v) for v in values]


def _compare(a: Any, b: Any) -> int:
    if a is None or b is None:
        return (a is not None) - (b is not None)
    try:
        return (a > b) - (a < b)
    except TypeError:
        a, b = str(a), str(b)
        return (a > b) - (a < b)


class ObjectCollection(Mapping):
    """Ordered mapping of key to object with bulk operations."""

    def __init__(
        self, elements: Mapping[Any, Any] | Iterable[Any] | None = None, key: str | None = None
    ) -> None:
        if elements is None:
            self._elements: dict[Any, Any] = {}
        elif isinstance(elements, Mapping):
            self._elements = dict(elements)
        else:
            self._elements = dict(enumerate(elements))
        self._key = key

    def create_from(self, elements: Mapping[Any, Any]) -> ObjectCollection:
        """Create a collection of the same kind from ``elements``."""
        return type(self)(elements, key=self._key)

    # Mapping protocol

    def __getitem__(self, key: Any) -> Any:
        return self._elements[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __bool__(self) -> bool:
        return bool(self._elements)

    # Accessors

    def get_key(self) -> str | None:
        return self._key

    def set_key(self, key: str | None) -> ObjectCollection:
        self._key = key
        return self

    def get_keys(self) -> list[Any]:
        return list(self._elements)

    def get_elements(self) -> dict[Any, Any]:
        return dict(self._elements)

    def first(self) -> Any:
        return next(iter(self._elements.values()), None)

    def last(self) -> Any:
        if not self._elements:
            return None
        return self._elements[next(reversed(self._elements))]

    def is_empty(self) -> bool:
        return not self._elements

    # Mutation

    def set(self, key: Any, element: Any) -> None:
        self._elements[key] = element

    def add(self, element: Any) -> None:
        self._elements[element.get_key()] = element

    def remove(self, key: Any) -> Any:
        return self._elements.pop(key, None)

    # Bulk operations

    def call(self, method: str, args: list[Any] | tuple[Any, ...] | None = None) -> dict[Any, Any]:
        """Call ``method`` on every element.

        Returns:
            Mapping of element key to the result; elements without the method
            map to None.
        """
        args = args or ()
        results: dict[Any, Any] = {}
        for key, element in self._elements.items():
            fn = getattr(element, method, None)
            results[key] = fn(*args) if callable(fn) else None
        return results

    def select(self, keys: Iterable[Any]) -> ObjectCollection:
        """Return the elements with the given keys, in the order of ``keys``."""
        selected = {k: self._elements[k] for k in keys if k in self._elements}
        return self.create_from(selected)

    def unselect(self, keys: Iterable[Any]) -> ObjectCollection:
        excluded = set(keys)
        return self.create_from({k: v for k, v in self._elements.items() if k not in excluded})

    def filter(self, predicate: Callable[[Any], Any]) -> ObjectCollection:
        return self.create_from({k: v for k, v in self._elements.items() if predicate(v)})

    def slice(self, offset: int, length: int | None = None) -> ObjectCollection:
        items = list(self._elements.items())
        end = None if length is None else offset + length
        return self.create_from(dict(items[offset:end]))

    def order_by(self, order: Mapping[str, str]) -> ObjectCollection:
        """Sort by one or more fields.

        Args:
            order: Field name to direction (``ASC``/``DESC``, case-insensitive),
                most significant first. Dotted names sort by nested values.
        """
        items = list(self._elements.items())
        # Stable sort from the least significant field up
        for name, direction in reversed(list(order.items())):
            descending = str(direction).upper() == "DESC"
            values = _sort_values([_field_value(element, name) for _, element in items])
            column = sorted(
                zip(values, items),
                key=cmp_to_key(lambda a, b: _compare(a[0], b[0])),
                reverse=descending,
            )
            items = [item for _, item in column]
        return self.create_from(dict(items))

    def matching(self, criteria: Criteria) -> ObjectCollection:
        collection = self
        if criteria.where is not None:
            collection = collection.filter(criteria.where)
        if criteria.order:
            collection = collection.order_by(criteria.order)
        if criteria.offset or criteria.limit is not None:
            collection = collection.slice(criteria.offset, criteria.limit)
        return collection

    def to_dict(self) -> dict[Any, Any]:
        return {
            key: element.to_dict() if hasattr(element, "to_dict") else element
            for key, element in self._elements.items()
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self._key!r}, count={len(self)})"


__all__ = ["Criteria", "ObjectCollection", "parse_order"]
