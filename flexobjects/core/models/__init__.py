"""Models package re-exports.

Allows `from flexobjects.core.models import FlexObject` imports by
re-exporting from the implementation module.
"""

from __future__ import annotations

from .models import FlexObject, User, get_nested_value, search_value

__all__ = ["FlexObject", "User", "get_nested_value", "search_value"]
