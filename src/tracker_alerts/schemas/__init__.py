"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .alert import (
    AlertChanged,
    AlertCreate,
    AlertCreated,
    AlertResponse,
    AlertUpdate,
    DueAlert,
    RecipientResponse,
    WatermarkResponse,
)

__all__ = [
    "AlertCreate", "AlertUpdate", "AlertResponse",
    "AlertCreated", "AlertChanged", "DueAlert",
    "RecipientResponse", "WatermarkResponse",
]
