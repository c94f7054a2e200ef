"""HTML content block produced by rendering a collection."""

from __future__ import annotations

import uuid
from typing import Any


class HtmlBlock:
    """Rendered HTML plus the bookkeeping needed to cache it.

    Attributes:
        checksum: Checksum of the data the content was rendered from; a cached
            block is only reused while the checksum still matches.
    """

    def __init__(self, block_id: str | None = None) -> None:
        self.id = block_id or uuid.uuid4().hex
        self.content = ""
        self.checksum: str | None = None
        self.cached = True
        self.stylesheets: list[str] = []
        self.scripts: list[str] = []

    @classmethod
    def create(cls, block_id: str | None = None) -> HtmlBlock:
        return cls(block_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HtmlBlock:
        """Rebuild a block from ``to_dict`` output.

        Raises:
            ValueError: If the data is not a block serialization.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a dict, got {type(data).__name__}")
        missing = [field for field in ("id", "content") if field not in data]
        if missing:
            raise ValueError(f"Block data is missing {', '.join(missing)}")
        if not isinstance(data["content"], str):
            raise ValueError("Block content must be a string")

        assets = data.get("assets") or {}
        if not isinstance(assets, dict):
            raise ValueError("Block assets must be a dict")
        for kind in ("css", "js"):
            urls = assets.get(kind, [])
            if not isinstance(urls, list) or not all(isinstance(url, str) for url in urls):
                raise ValueError(f"Block {kind} assets must be a list of strings")

        block = cls(str(data["id"]))
        block.content = data["content"]
        block.checksum = data.get("checksum")
        block.cached = bool(data.get("cached", True))
        block.stylesheets = list(assets.get("css", []))
        block.scripts = list(assets.get("js", []))
        return block

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "checksum": self.checksum,
            "cached": self.cached,
            "assets": {"css": list(self.stylesheets), "js": list(self.scripts)},
        }

    def get_id(self) -> str:
        return self.id

    def get_content(self) -> str:
        return self.content

    def set_content(self, content: str) -> HtmlBlock:
        self.content = content
        return self

    def get_checksum(self) -> str | None:
        return self.checksum

    def set_checksum(self, checksum: str) -> HtmlBlock:
        self.checksum = checksum
        return self

    def is_cached(self) -> bool:
        return self.cached

    def disable_cache(self) -> HtmlBlock:
        self.cached = False
        return self

    def add_stylesheet(self, href: str) -> str:
        """Register a stylesheet; returns "" so templates can call it inline."""
        if href not in self.stylesheets:
            self.stylesheets.append(href)
        return ""

    def add_script(self, src: str) -> str:
        if src not in self.scripts:
            self.scripts.append(src)
        return ""

    def get_assets(self) -> dict[str, list[str]]:
        return {"css": list(self.stylesheets), "js": list(self.scripts)}

    def __str__(self) -> str:
        return self.content

    def __html__(self) -> str:
        # Already rendered (and escaped) markup
        return self.content

    def __repr__(self) -> str:
        return f"HtmlBlock(id={self.id!r}, checksum={self.checksum!r}, cached={self.cached})"


__all__ = ["HtmlBlock"]
