# src/tracker_alerts/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import alerts_router

__all__ = [
    "alerts_router",
]
