# src/tracker_alerts/schemas/alert.py
"""Alert-related Pydantic schemas."""

from pydantic import BaseModel, Field, model_validator

from tracker_alerts.models import DeliveryMode


class AlertCreate(BaseModel):
    """Schema for creating a new alert."""

    type_id: int = Field(..., description="Issue type the alert watches")
    view_id: int | None = Field(None, description="Optional view filtering the issues")
    project_id: int | None = Field(None, description="Project for project-wide alerts")
    folder_id: int | None = Field(None, description="Folder for folder-specific alerts")
    delivery_mode: DeliveryMode = Field(DeliveryMode.IMMEDIATE, description="Delivery mode")
    summary_days: str | None = Field(
        None,
        description="Comma-separated days of week for digests (0 = Monday ... 6 = Sunday)",
    )
    summary_hours: str | None = Field(
        None,
        description="Comma-separated hours of day for digests (0-23)",
    )
    public: bool = Field(False, description="Create a public alert (administrators only)")


class AlertUpdate(BaseModel):
    """Schema for changing the delivery settings of an alert."""

    delivery_mode: DeliveryMode
    summary_days: str | None = None
    summary_hours: str | None = None


class AlertResponse(BaseModel):
    """Schema for alert information returned by the API."""

    alert_id: int
    user_id: int | None
    is_public: bool
    type_id: int
    type_name: str
    view_id: int | None
    view_name: str | None
    project_id: int | None
    project_name: str | None
    folder_id: int | None
    folder_name: str | None
    delivery_mode: DeliveryMode
    summary_days: str | None
    summary_hours: str | None
    watermark: int | None

    @model_validator(mode="before")
    @classmethod
    def _flatten_details(cls, data: object) -> object:
        if isinstance(data, dict):
            return data

        # Accept either an AlertDetails or a bare Alert row.
        alert = getattr(data, "alert", data)
        return {
            "alert_id": alert.alert_id,
            "user_id": alert.user_id,
            "is_public": alert.is_public,
            "type_id": alert.type_id,
            "type_name": getattr(data, "type_name", ""),
            "view_id": alert.view_id,
            "view_name": getattr(data, "view_name", None),
            "project_id": alert.project_id,
            "project_name": getattr(data, "project_name", None),
            "folder_id": alert.folder_id,
            "folder_name": getattr(data, "folder_name", None),
            "delivery_mode": alert.delivery_mode,
            "summary_days": alert.summary_days,
            "summary_hours": alert.summary_hours,
            "watermark": alert.stamp_id,
        }


class AlertCreated(BaseModel):
    """Schema returned after an alert has been created."""

    alert_id: int


class AlertChanged(BaseModel):
    """Schema returned by modify and delete operations."""

    alert_id: int
    changed: bool


class DueAlert(BaseModel):
    """Schema for an alert selected as due."""

    alert_id: int
    type_id: int
    view_id: int | None
    project_id: int | None
    folder_id: int | None
    delivery_mode: DeliveryMode
    watermark: int | None

    @model_validator(mode="before")
    @classmethod
    def _from_alert(cls, data: object) -> object:
        if isinstance(data, dict):
            return data
        extracted: dict[str, object | None] = {}
        for field_name in cls.model_fields:
            extracted[field_name] = getattr(data, field_name, None)
        extracted["watermark"] = getattr(data, "stamp_id", None)
        return extracted


class RecipientResponse(BaseModel):
    """Schema for a resolved recipient of a public alert."""

    user_id: int
    user_name: str
    email: str


class WatermarkResponse(BaseModel):
    """Schema returned after advancing an alert's watermark."""

    alert_id: int
    watermark: int | None
