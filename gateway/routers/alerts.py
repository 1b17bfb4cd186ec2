"""
gateway/routers/alerts.py

Alert REST endpoints.
- GET /alerts, GET /alerts/{id}, PATCH /alerts/{id}/read: any authenticated user
- POST, PUT, DELETE: admin and doctor only
Lifecycle and permission rules live in AlertService; NotFoundError and
AccessDeniedError are mapped to 404/403 by handlers in gateway/main.py.
"""

import structlog
from fastapi import APIRouter, Depends, status

from gateway.auth import get_current_user, require_roles
from gateway.dependencies import get_alert_service, get_broadcaster
from gateway.schemas import AlertCreate, AlertEvent, AlertRecord, AlertUpdate, CurrentUser
from gateway.services.alerts import AlertService
from gateway.services.notification import NotificationBroadcaster

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/alerts", tags=["Alerts"])

_staff_only = require_roles("admin", "doctor")


@router.get("", response_model=list[AlertRecord])
async def list_alerts(
    user: CurrentUser = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service),
) -> list[AlertRecord]:
    """Alerts visible to the caller, newest first."""
    return await service.get_alerts(user)


@router.get("/{alert_id}", response_model=AlertRecord)
async def get_alert(
    alert_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service),
) -> AlertRecord:
    """Single alert, if the caller owns it, is staff for its patient, or is admin."""
    return await service.get_alert(alert_id, user)


@router.patch("/{alert_id}/read", response_model=AlertRecord)
async def mark_alert_as_read(
    alert_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service),
) -> AlertRecord:
    """Mark one of the caller's alerts as read."""
    return await service.mark_alert_as_read(alert_id, user.id, user.role)


@router.post("", response_model=AlertRecord, status_code=status.HTTP_201_CREATED)
async def create_alert(
    payload: AlertCreate,
    user: CurrentUser = Depends(_staff_only),
    service: AlertService = Depends(get_alert_service),
    broadcaster: NotificationBroadcaster = Depends(get_broadcaster),
) -> AlertRecord:
    """Create an alert by hand and push it to the target user's channels."""
    alert = await service.create_alert(payload)
    broadcaster.publish(AlertEvent.from_alert(alert))
    logger.info("manual_alert_created", alert_id=alert.id, created_by=user.id)
    return alert


@router.put("/{alert_id}", response_model=AlertRecord)
async def update_alert(
    alert_id: int,
    patch: AlertUpdate,
    user: CurrentUser = Depends(_staff_only),
    service: AlertService = Depends(get_alert_service),
) -> AlertRecord:
    """Change title, message or category of an alert."""
    return await service.update_alert(alert_id, patch, user.id, user.role)


@router.delete("/{alert_id}")
async def delete_alert(
    alert_id: int,
    user: CurrentUser = Depends(_staff_only),
    service: AlertService = Depends(get_alert_service),
) -> dict[str, str]:
    """Remove an alert permanently."""
    await service.delete_alert(alert_id, user.id, user.role)
    return {"message": "Alert deleted successfully"}
