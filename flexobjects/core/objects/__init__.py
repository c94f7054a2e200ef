"""Object collections."""

from __future__ import annotations

from .collection import Criteria, ObjectCollection
from .flex_collection import FlexCollection

__all__ = ["Criteria", "FlexCollection", "ObjectCollection"]
