"""
gateway/services/policy.py

Access rules for alerts, evaluated in one place.
- READ: admin, the alert's target user, or the target's assigned doctor
- MUTATE (update, delete, mark read): admin or the alert's target user

Doctors have read-only visibility into their patients' alerts.
"""

from enum import Enum
from typing import Optional

import structlog

from gateway.errors import AccessDeniedError
from gateway.schemas import AlertRecord, CurrentUser

logger = structlog.get_logger(__name__)

ADMIN_ROLE: str = "admin"
DOCTOR_ROLE: str = "doctor"


class Action(str, Enum):
    READ = "read"
    MUTATE = "mutate"


def is_permitted(
    action: Action,
    requester: CurrentUser,
    alert: AlertRecord,
    assigned_doctor_id: Optional[int] = None,
) -> bool:
    """Return True if requester may perform action on alert."""
    if requester.role == ADMIN_ROLE or requester.id == alert.user_id:
        return True
    if action is Action.READ and requester.role == DOCTOR_ROLE:
        return assigned_doctor_id is not None and assigned_doctor_id == requester.id
    return False


def ensure_permitted(
    action: Action,
    requester: CurrentUser,
    alert: AlertRecord,
    assigned_doctor_id: Optional[int] = None,
) -> None:
    """Raise AccessDeniedError unless is_permitted() allows the action."""
    if not is_permitted(action, requester, alert, assigned_doctor_id):
        logger.warning(
            "alert_access_denied",
            alert_id=alert.id,
            action=action.value,
            requester_id=requester.id,
            requester_role=requester.role,
        )
        raise AccessDeniedError("Access denied")
