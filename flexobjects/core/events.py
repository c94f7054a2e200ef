"""Signals fired while working with flex collections.

Receivers connect with ``collection_render.connect(fn)`` and get the
collection as sender plus an ``event`` keyword argument. ``RenderEvent`` is
mutable: receivers may change the layout or add to the context before the
template is rendered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from blinker import Namespace

if TYPE_CHECKING:
    from flexobjects.core.objects.flex_collection import FlexCollection

flex_signals = Namespace()

collection_render = flex_signals.signal("collection-render")


@dataclass
class RenderEvent:
    collection: FlexCollection
    layout: str
    context: dict[str, Any] = field(default_factory=dict)


__all__ = ["RenderEvent", "collection_render", "flex_signals"]
