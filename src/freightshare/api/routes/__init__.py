"""Route group exports."""

from . import health, matching

__all__ = ["health", "matching"]
