"""Flex objects: typed content collections with search, sorting and cached rendering."""

__version__ = "0.3.0"

__all__: list[str] = ["__version__"]
