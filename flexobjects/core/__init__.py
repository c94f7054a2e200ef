"""flexobjects.core package (lightweight).

Submodules are not imported at package import time so tools can import
`flexobjects.core` without pulling in Jinja2 or blinker. Import submodules
explicitly where needed.
"""

from __future__ import annotations

__all__ = []
