"""API route modules."""

from . import health, identify

__all__ = [
    "health",
    "identify",
]
