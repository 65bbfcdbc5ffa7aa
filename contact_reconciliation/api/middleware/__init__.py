"""API middleware modules."""

from .security import RequestIDMiddleware, get_cors_origins

__all__ = [
    "RequestIDMiddleware",
    "get_cors_origins",
]
