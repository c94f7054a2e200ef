"""Jinja2 template rendering for flex collections.

Templates are looked up in the configured template folders first and then
in the templates bundled with the package, so a site can override any
layout by placing a file with the same name in its own folder.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    Template,
    select_autoescape,
)
from markupsafe import Markup

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Thin wrapper around a Jinja2 environment."""

    def __init__(self, template_dirs: Iterable[str | Path] = (), **env_options: Any) -> None:
        self.template_dirs = [Path(p) for p in template_dirs]
        loader = ChoiceLoader(
            [
                FileSystemLoader([str(p) for p in self.template_dirs]),
                PackageLoader("flexobjects", "templates"),
            ]
        )
        env_options.setdefault("autoescape", select_autoescape(["html", "htm", "xml"]))
        env_options.setdefault("trim_blocks", True)
        env_options.setdefault("lstrip_blocks", True)
        self.env = Environment(loader=loader, **env_options)
        self.env.globals["render"] = _render_collection
        logger.debug("Template search path: %s", self.template_dirs)

    def resolve_template(self, names: str | list[str]) -> Template:
        """Return the first existing template of ``names``.

        Raises:
            jinja2.TemplateNotFound: If none of the templates exist.
        """
        if isinstance(names, str):
            names = [names]
        return self.env.select_template(names)

    def render(self, name: str, context: dict[str, Any]) -> str:
        return self.resolve_template(name).render(context)


def _render_collection(collection: Any, layout: str | None = None, **context: Any) -> Markup:
    """Template global: ``{{ render(collection, 'list', my_check=true) }}``."""
    return Markup(collection.render(layout, context).get_content())


__all__ = ["TemplateRenderer"]
