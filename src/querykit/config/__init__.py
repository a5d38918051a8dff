"""Configuration management for querykit.

Usage:
    >>> from querykit.config import get_settings
    >>> settings = get_settings()
    >>> settings.SLOW_QUERY_THRESHOLD_MS
    1000
"""

from querykit.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
