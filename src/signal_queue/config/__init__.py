"""
Package: config
Description: Configuration for signal queue backends.
"""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
