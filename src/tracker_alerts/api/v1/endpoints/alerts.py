# src/tracker_alerts/api/v1/endpoints/alerts.py
"""Alert endpoints for the tracker alerts API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from tracker_alerts.core.errors import (
    AccessDeniedError,
    AlertError,
    AlertStorageError,
    DuplicateAlertError,
    InvalidArgumentsError,
    UnknownAlertError,
)
from tracker_alerts.schemas.alert import (
    AlertChanged,
    AlertCreate,
    AlertCreated,
    AlertResponse,
    AlertUpdate,
    DueAlert,
    RecipientResponse,
    WatermarkResponse,
)
from tracker_alerts.services.alert_store import AlertDetails
from tracker_alerts.services.recipients import Recipient, get_alert_recipients
from tracker_alerts.services.selector import get_alerts_to_email, get_public_alerts_to_email
from tracker_alerts.services.watermark import advance_watermark

from ..dependencies import AdminDep, AlertStoreDep, PrincipalDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/alerts", tags=["alerts"])

_ERROR_STATUS: dict[type[AlertError], int] = {
    UnknownAlertError: status.HTTP_404_NOT_FOUND,
    AccessDeniedError: status.HTTP_403_FORBIDDEN,
    DuplicateAlertError: status.HTTP_409_CONFLICT,
    InvalidArgumentsError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AlertStorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _http_error(err: AlertError) -> HTTPException:
    """Translate an alert engine error into an HTTP error."""
    code = _ERROR_STATUS.get(type(err), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning("Alert request failed: %s", err)
    return HTTPException(status_code=code, detail=str(err))


@router.get("/", response_model=list[AlertResponse])
async def list_personal_alerts(
    principal: PrincipalDep,
    store: AlertStoreDep,
) -> list[AlertDetails]:
    """List the caller's personal alerts."""
    return store.get_personal_alerts(principal)


@router.get("/public", response_model=list[AlertResponse])
async def list_public_alerts(
    principal: PrincipalDep,
    store: AlertStoreDep,
) -> list[AlertDetails]:
    """List public alerts whose scope the caller can see."""
    return store.get_public_alerts(principal)


@router.get("/due", response_model=list[DueAlert])
async def list_due_alerts(
    principal: PrincipalDep,
    db: SessionDep,
    include_summary: bool = False,
) -> list[DueAlert]:
    """List the caller's alerts for which a notification is due."""
    alerts = get_alerts_to_email(db, principal, include_summary=include_summary)
    return [DueAlert.model_validate(alert) for alert in alerts]


@router.get("/public/due", response_model=list[DueAlert])
async def list_due_public_alerts(
    _admin: AdminDep,
    db: SessionDep,
    include_summary: bool = False,
) -> list[DueAlert]:
    """List public alerts for which a notification is due (administrators only)."""
    alerts = get_public_alerts_to_email(db, include_summary=include_summary)
    return [DueAlert.model_validate(alert) for alert in alerts]


@router.get("/{alert_id}", response_model=AlertResponse)
async def get_alert(
    alert_id: int,
    principal: PrincipalDep,
    store: AlertStoreDep,
) -> AlertDetails:
    """Get a specific alert by ID."""
    try:
        return store.get_alert(principal, alert_id)
    except AlertError as err:
        raise _http_error(err) from err


@router.post("/", response_model=AlertCreated, status_code=status.HTTP_201_CREATED)
async def create_alert(
    alert_data: AlertCreate,
    principal: PrincipalDep,
    store: AlertStoreDep,
) -> AlertCreated:
    """Create a personal alert, or a public one for administrators."""
    try:
        alert_id = store.create_alert(
            principal,
            alert_data.type_id,
            view_id=alert_data.view_id,
            project_id=alert_data.project_id,
            folder_id=alert_data.folder_id,
            delivery_mode=alert_data.delivery_mode,
            summary_days=alert_data.summary_days,
            summary_hours=alert_data.summary_hours,
            public=alert_data.public,
        )
    except AlertError as err:
        raise _http_error(err) from err
    return AlertCreated(alert_id=alert_id)


@router.patch("/{alert_id}", response_model=AlertChanged)
async def modify_alert(
    alert_id: int,
    alert_data: AlertUpdate,
    principal: PrincipalDep,
    store: AlertStoreDep,
) -> AlertChanged:
    """Change the delivery settings of an alert."""
    try:
        details = store.get_alert(principal, alert_id, require_editable=True)
        changed = store.modify_alert(
            details.alert,
            alert_data.delivery_mode,
            alert_data.summary_days,
            alert_data.summary_hours,
        )
    except AlertError as err:
        raise _http_error(err) from err
    return AlertChanged(alert_id=alert_id, changed=changed)


@router.delete("/{alert_id}", response_model=AlertChanged)
async def delete_alert(
    alert_id: int,
    principal: PrincipalDep,
    store: AlertStoreDep,
) -> AlertChanged:
    """Delete an alert."""
    try:
        details = store.get_alert(principal, alert_id, require_editable=True)
        changed = store.delete_alert(details.alert)
    except AlertError as err:
        raise _http_error(err) from err
    return AlertChanged(alert_id=alert_id, changed=changed)


@router.get("/{alert_id}/recipients", response_model=list[RecipientResponse])
async def list_alert_recipients(
    alert_id: int,
    admin: AdminDep,
    store: AlertStoreDep,
    db: SessionDep,
) -> list[Recipient]:
    """List who a public alert would currently be delivered to (administrators only)."""
    try:
        details = store.get_alert(admin, alert_id)
    except AlertError as err:
        raise _http_error(err) from err
    if not details.is_public:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Recipients are only resolved for public alerts",
        )
    return get_alert_recipients(db, details.alert)


@router.post("/{alert_id}/watermark", response_model=WatermarkResponse)
async def advance_alert_watermark(
    alert_id: int,
    principal: PrincipalDep,
    store: AlertStoreDep,
    db: SessionDep,
) -> WatermarkResponse:
    """Mark the alert's current changes as delivered."""
    try:
        store.get_alert(principal, alert_id, require_editable=True)
    except AlertError as err:
        raise _http_error(err) from err

    watermark = advance_watermark(db, alert_id)
    return WatermarkResponse(alert_id=alert_id, watermark=watermark)
