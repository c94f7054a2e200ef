"""Flex registry.

Owns every flex directory together with the services they share: the
template renderer, the debugger and the application config.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from flexobjects.core.config import AppConfig
from flexobjects.core.config import config as default_config
from flexobjects.core.directory import FlexDirectory
from flexobjects.core.rendering import TemplateRenderer
from flexobjects.core.storage import FolderStorage
from flexobjects.utils.debugger import Debugger

logger = logging.getLogger(__name__)


class Flex:
    """Registry of flex directories (Service container)."""

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        debugger: Debugger | None = None,
        app_config: AppConfig | None = None,
    ) -> None:
        self.config = app_config or default_config
        self.renderer = renderer or TemplateRenderer([self.config.templates_dir])
        self.debugger = debugger or Debugger(enabled=self.config.debug)
        self._directories: dict[str, FlexDirectory] = {}

    @classmethod
    def from_config(cls, app_config: AppConfig | None = None) -> Flex:
        """Create a registry with one directory per folder in the storage dir.

        A ``blueprint.json`` inside a folder provides that directory's config.

        Raises:
            ValueError: If a blueprint is not a JSON object.
        """
        flex = cls(app_config=app_config)
        storage_dir = flex.config.storage_dir
        if not storage_dir.is_dir():
            logger.warning("Flex storage directory %s does not exist", storage_dir)
            return flex

        for folder in sorted(p for p in storage_dir.iterdir() if p.is_dir()):
            if folder.name.startswith("."):
                continue
            flex.add_directory(
                FlexDirectory(folder.name, _load_blueprint(folder), FolderStorage(folder))
            )
        logger.info("Registered %d flex directories from %s", len(flex._directories), storage_dir)
        return flex

    def add_directory(self, directory: FlexDirectory) -> FlexDirectory:
        directory.set_flex(self)
        self._directories[directory.get_type()] = directory
        return directory

    def has_directory(self, flex_type: str) -> bool:
        return flex_type in self._directories

    def get_directory(self, flex_type: str) -> FlexDirectory | None:
        return self._directories.get(flex_type)

    def get_directories(self) -> dict[str, FlexDirectory]:
        return dict(self._directories)


def _load_blueprint(folder: Path) -> dict[str, Any]:
    blueprint_path = folder / "blueprint.json"
    if not blueprint_path.is_file():
        return {}
    with blueprint_path.open("r", encoding="utf-8") as f:
        blueprint = json.load(f)
    if not isinstance(blueprint, dict):
        raise ValueError(f"Blueprint {blueprint_path} must be a JSON object")
    # Collection classes can't come from JSON
    blueprint.pop("collection", None)
    return blueprint


__all__ = ["Flex"]
