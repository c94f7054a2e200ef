"""Configuration package.

Implementation is in config.py - this __init__.py only handles imports/exports.
"""

from flexobjects.core.config.config import AppConfig

# Singleton instance - use this throughout the application
config = AppConfig()

__all__ = ["AppConfig", "config"]
