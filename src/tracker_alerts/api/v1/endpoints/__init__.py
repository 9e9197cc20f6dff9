"""API endpoint modules for version 1."""

from .alerts import router as alerts_router

__all__ = [
    "alerts_router",
]
