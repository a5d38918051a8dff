"""Shared utilities."""

from querykit.utils.logging import bind_context, get_logger

__all__ = [
    "bind_context",
    "get_logger",
]
