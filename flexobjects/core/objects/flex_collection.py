"""FlexCollection: a collection of flex objects from one directory.

Adds searching, sorting, re-keying, permission filtering and cached HTML
rendering on top of ObjectCollection.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from jinja2 import Template, TemplateNotFound

from flexobjects.core.cache import Cache, InvalidCacheKeyError
from flexobjects.core.content_block import HtmlBlock
from flexobjects.core.events import RenderEvent, collection_render
from flexobjects.core.models import FlexObject, User
from flexobjects.core.objects.collection import Criteria, ObjectCollection

if TYPE_CHECKING:
    from flexobjects.core.directory import FlexDirectory
    from flexobjects.core.flex import Flex
    from flexobjects.core.index import FlexIndex
    from flexobjects.utils.debugger import Debugger

logger = logging.getLogger(__name__)

KEY_FIELDS = ("storage_key", "flex_key", "key")

_SCALARS = (str, int, float, bool, type(None))


def _sha1_json(value: Any) -> str:
    return hashlib.sha1(json.dumps(value).encode("utf-8")).hexdigest()


class FlexCollection(ObjectCollection):
    """Collection of FlexObjects belonging to one FlexDirectory."""

    def __init__(
        self,
        elements: Mapping[Any, FlexObject] | None = None,
        directory: FlexDirectory | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(elements, key=key)
        self._flex_directory: FlexDirectory | None = None
        self._key_field = "storage_key"
        if directory is not None:
            self.set_flex_directory(directory).set_key(directory.get_type())

    @staticmethod
    def get_cached_methods() -> dict[str, bool | str]:
        """Methods whose results may be cached, and how.

        ``True`` means cacheable, ``False`` never cached and ``"session"``
        cacheable per user session.
        """
        return {
            "get_type_prefix": True,
            "get_type": True,
            "get_flex_directory": True,
            "get_cache_key": True,
            "get_cache_checksum": True,
            "get_timestamp": True,
            "has_property": True,
            "get_property": True,
            "has_nested_property": True,
            "get_nested_property": True,
            "order_by": True,
            "render": False,
            "is_authorized": "session",
            "search": True,
            "sort": True,
        }

    @classmethod
    def create_from_array(
        cls,
        entries: Mapping[Any, FlexObject],
        directory: FlexDirectory,
        key_field: str | None = None,
    ) -> FlexCollection:
        instance = cls(entries, directory)
        instance.set_key_field(key_field)
        return instance

    def create_from(
        self, elements: Mapping[Any, FlexObject], key_field: str | None = None
    ) -> FlexCollection:
        collection = type(self)(elements, self._flex_directory, key=self.get_key())
        collection.set_key_field(key_field or self._key_field)
        return collection

    def get_type_prefix(self) -> str:
        return "c."

    def get_type(self, prefix: bool = False) -> str:
        type_prefix = self.get_type_prefix() if prefix else ""
        return type_prefix + self.get_flex_directory().get_type()

    def search(
        self,
        search: str,
        properties: str | list[str] | None = None,
        options: dict[str, Any] | None = None,
    ) -> FlexCollection:
        """Return objects matching ``search``, ordered by key descending.

        Objects are scored with ``FlexObject.search``; objects scoring 0 are
        dropped.
        """
        matching = [
            key
            for key, weight in self.call("search", [search, properties, options]).items()
            if weight
        ]
        return self.select(sorted(matching, reverse=True))

    def sort(self, order: Mapping[str, str]) -> FlexCollection:
        """Sort by ``{field: "ASC" | "DESC"}``, most significant field first."""
        return self.matching(Criteria.create().order_by(dict(order)))

    def render(self, layout: str | None = None, context: dict[str, Any] | None = None) -> HtmlBlock:
        """Render the collection with a layout template.

        The result is cached when every context value is a scalar. A cached
        block is reused only while its checksum matches the objects'
        timestamps.

        Args:
            layout: Layout name, ``default`` when None.
            context: Extra template variables.

        Returns:
            The rendered block.

        Raises:
            jinja2.TemplateError: If the template fails to compile or render.
        """
        layout = layout or "default"
        context = dict(context or {})
        flex = self._get_flex()
        debugger = flex.debugger
        flex_type = self.get_type(False)

        timer = f"flex-collection-{flex_type}-{uuid.uuid4().hex[:13]}"
        debugger.start_timer(timer, f"Render Collection {flex_type} ({layout})")
        try:
            cacheable = all(isinstance(value, _SCALARS) for value in context.values())
            cache: Cache | None = None
            key: str | None = None
            if cacheable:
                raw_key = f"{self.get_cache_key()}.{layout}{json.dumps(context, sort_keys=True)}"
                key = hashlib.md5(raw_key.encode("utf-8")).hexdigest()
                cache = self.get_cache("render")

            block = self._load_cached_block(cache, key, debugger)

            checksum = self.get_cache_checksum()
            if block is not None and block.get_checksum() != checksum:
                logger.debug("Discarding stale render cache for %s (%s)", flex_type, layout)
                block = None

            if block is None:
                block = HtmlBlock.create(key)
                block.set_checksum(checksum)
                if not cacheable:
                    block.disable_cache()

                event = RenderEvent(collection=self, layout=layout, context=context)
                collection_render.send(self, event=event)
                layout, context = event.layout, event.context

                output = self.get_template(layout).render(
                    {
                        **context,
                        "flex": flex,
                        "block": block,
                        "collection": self,
                        "layout": layout,
                    }
                )

                if debugger.enabled():
                    output = (
                        f"\n<!-- START {flex_type} collection -->\n"
                        f"{output}\n"
                        f"<!-- END {flex_type} collection -->\n"
                    )

                block.set_content(output)

                if cache is not None and key is not None and block.is_cached():
                    try:
                        cache.set(key, block.to_dict())
                    except InvalidCacheKeyError as e:
                        debugger.add_exception(e)
        finally:
            debugger.stop_timer(timer)

        return block

    def _load_cached_block(
        self, cache: Cache | None, key: str | None, debugger: Debugger
    ) -> HtmlBlock | None:
        if cache is None or key is None:
            return None
        try:
            data = cache.get(key)
            return HtmlBlock.from_dict(data) if data else None
        except ValueError as e:
            # InvalidCacheKeyError is a ValueError too
            debugger.add_exception(e)
            return None

    def set_flex_directory(self, directory: FlexDirectory) -> FlexCollection:
        self._flex_directory = directory
        return self

    def get_flex_directory(self) -> FlexDirectory:
        if self._flex_directory is None:
            raise RuntimeError("Collection is not attached to a flex directory")
        return self._flex_directory

    def get_meta_data(self, key: Any) -> dict[str, Any]:
        obj = self.get(key)
        return obj.get_meta_data() if isinstance(obj, FlexObject) else {}

    def get_cache(self, namespace: str | None = None) -> Cache:
        return self.get_flex_directory().get_cache(namespace)

    def get_cache_key(self) -> str:
        return f"{self.get_type(True)}.{_sha1_json(list(self.call('get_key').values()))}"

    def get_cache_checksum(self) -> str:
        return _sha1_json(self.get_timestamps())

    def get_timestamps(self) -> dict[Any, int]:
        return self.call("get_timestamp")

    def get_storage_keys(self) -> dict[Any, str]:
        return self.call("get_storage_key")

    def get_flex_keys(self) -> dict[Any, str]:
        return self.call("get_flex_key")

    def get_index(self) -> FlexIndex:
        return self.get_flex_directory().get_index(self.get_keys(), self.get_key_field())

    def with_key_field(self, key_field: str | None = None) -> FlexCollection:
        """Return the collection keyed by ``key_field``.

        Args:
            key_field: ``key`` (default), ``storage_key`` or ``flex_key``.

        Raises:
            ValueError: For any other key field.
        """
        key_field = key_field or "key"
        if key_field not in KEY_FIELDS:
            raise ValueError(f"Unknown key field: {key_field}")
        if key_field == self.get_key_field():
            return self

        getter = f"get_{key_field}"
        entries = {getattr(obj, getter)(): obj for obj in self.values()}
        return self.create_from(entries, key_field)

    def get_key_field(self) -> str:
        return self._key_field

    def set_key_field(self, key_field: str | None = None) -> None:
        self._key_field = key_field or "storage_key"

    def is_authorized(
        self, action: str, scope: str | None = None, user: User | None = None
    ) -> FlexCollection:
        """Return the objects the user may perform ``action`` on."""
        allowed = self.call("is_authorized", [action, scope, user])
        return self.select([key for key, ok in allowed.items() if ok])

    def find(self, value: Any, field: str = "id") -> FlexObject | None:
        """Return the first object whose ``field`` equals ``value``, ignoring case."""
        if not value:
            return None
        needle = str(value).casefold()
        for obj in self.values():
            prop = obj.get_property(field)
            if prop is not None and str(prop).casefold() == needle:
                return obj
        return None

    def get_template(self, layout: str) -> Template:
        """Resolve the layout template, falling back to the 404 layout.

        A layout of the collection's own type wins over the shared
        ``_default`` layout of the same name.
        """
        flex = self._get_flex()
        try:
            return flex.renderer.resolve_template(
                [
                    f"flex-objects/layouts/{self.get_type(False)}/collection/{layout}.html",
                    f"flex-objects/layouts/_default/collection/{layout}.html",
                ]
            )
        except TemplateNotFound as e:
            flex.debugger.add_exception(e)
            return flex.renderer.resolve_template(["flex-objects/layouts/404.html"])

    def get_related_directory(self, flex_type: str) -> FlexDirectory | None:
        return self._get_flex().get_directory(flex_type)

    def _get_flex(self) -> Flex:
        flex = self.get_flex_directory().get_flex()
        if flex is None:
            raise RuntimeError(f"Directory {self.get_type(False)} is not registered with Flex")
        return flex

    def __repr__(self) -> str:
        flex_type = self._flex_directory.get_type() if self._flex_directory else None
        return (
            f"{type(self).__name__}(type={flex_type!r}, key={self.get_key()!r}, "
            f"key_field={self._key_field!r}, count={len(self)})"
        )


__all__ = ["FlexCollection", "KEY_FIELDS"]
