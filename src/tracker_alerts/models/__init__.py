# src/tracker_alerts/models/__init__.py
"""SQLAlchemy models for the tracker alerts application."""

from .alert import Alert, DeliveryMode
from .hierarchy import Folder, IssueType, Project, ProjectAccess, ProjectRight, View
from .system_clock import SystemClock
from .user import EMAIL_PREFERENCE, Preference, User, UserAccess

__all__ = [
    "Alert", "DeliveryMode",
    "Folder", "IssueType", "Project", "ProjectAccess", "ProjectRight", "View",
    "SystemClock",
    "EMAIL_PREFERENCE", "Preference", "User", "UserAccess",
]
