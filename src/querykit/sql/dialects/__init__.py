"""Driver placeholder dialects."""

from .paramstyle import SUPPORTED_PARAMSTYLES, rebind

__all__ = [
    "SUPPORTED_PARAMSTYLES",
    "rebind",
]
