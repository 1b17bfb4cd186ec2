"""
gateway/services/alerts.py

Alert lifecycle: creation, role-scoped retrieval, update, delete, mark-read.
Permission checks are delegated to gateway/services/policy.py.
"""

from typing import Optional

import structlog

from gateway.errors import NotFoundError
from gateway.schemas import AlertCreate, AlertRecord, AlertUpdate, CurrentUser
from gateway.services.persistence import AlertStore
from gateway.services.policy import ADMIN_ROLE, DOCTOR_ROLE, Action, ensure_permitted

logger = structlog.get_logger(__name__)


class AlertService:
    """Owns alert identity and lifecycle on top of an AlertStore."""

    def __init__(self, store: AlertStore) -> None:
        self.store = store

    async def create_alert(self, data: AlertCreate) -> AlertRecord:
        """
        Persist a new, unread alert for an existing user.

        Raises NotFoundError when the target user does not exist.
        """
        user = await self.store.find_user_by_id(data.user_id)
        if user is None:
            logger.warning("alert_target_missing", user_id=data.user_id)
            raise NotFoundError("Target user not found")

        alert = await self.store.create_alert_row(
            {
                "title": data.title,
                "message": data.message,
                "user_id": data.user_id,
                "category": data.category,
                "level": data.level,
                "severity": data.severity.value,
                "status": data.status or data.severity.value,
                "is_read": False,
            }
        )
        logger.info(
            "alert_created",
            alert_id=alert.id,
            user_id=alert.user_id,
            category=alert.category,
            severity=alert.severity.value,
        )
        return alert

    async def get_alerts(self, requester: CurrentUser) -> list[AlertRecord]:
        """
        Return the alerts visible to requester, newest first.

        Admins see everything, doctors see their assigned patients' alerts,
        everyone else sees only their own.
        """
        if requester.role == ADMIN_ROLE:
            return await self.store.find_alerts()

        if requester.role == DOCTOR_ROLE:
            patients = await self.store.find_users_assigned_to_doctor(requester.id)
            patient_ids = [p.id for p in patients]
            if not patient_ids:
                return []
            return await self.store.find_alerts(user_ids=patient_ids)

        return await self.store.find_alerts(user_ids=[requester.id])

    async def get_alert(self, alert_id: int, requester: CurrentUser) -> AlertRecord:
        """Fetch one alert, enforcing read access for the requester."""
        alert = await self._require_alert(alert_id)
        assigned_doctor_id: Optional[int] = None
        if requester.role == DOCTOR_ROLE:
            target = await self.store.find_user_by_id(alert.user_id)
            assigned_doctor_id = target.doctor_id if target is not None else None
        ensure_permitted(Action.READ, requester, alert, assigned_doctor_id)
        return alert

    async def update_alert(
        self,
        alert_id: int,
        patch: AlertUpdate,
        requester_id: int,
        requester_role: str,
    ) -> AlertRecord:
        """Apply the set fields of the patch and return the updated alert."""
        alert = await self._require_mutable(alert_id, requester_id, requester_role)
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            return alert
        await self.store.update_alert_row(alert_id, changes)
        logger.info("alert_updated", alert_id=alert_id, fields=sorted(changes))
        return alert.model_copy(update=changes)

    async def delete_alert(
        self,
        alert_id: int,
        requester_id: int,
        requester_role: str,
    ) -> None:
        """Delete an alert the requester is allowed to mutate."""
        await self._require_mutable(alert_id, requester_id, requester_role)
        await self.store.delete_alert_row(alert_id)
        logger.info("alert_deleted", alert_id=alert_id, requester_id=requester_id)

    async def mark_alert_as_read(
        self,
        alert_id: int,
        requester_id: int,
        requester_role: str,
    ) -> AlertRecord:
        """Set is_read; marking an already-read alert is a no-op success."""
        alert = await self._require_mutable(alert_id, requester_id, requester_role)
        await self.store.update_alert_row(alert_id, {"is_read": True})
        return alert.model_copy(update={"is_read": True})

    async def _require_alert(self, alert_id: int) -> AlertRecord:
        alert = await self.store.find_alert_by_id(alert_id)
        if alert is None:
            raise NotFoundError("Alert not found")
        return alert

    async def _require_mutable(
        self,
        alert_id: int,
        requester_id: int,
        requester_role: str,
    ) -> AlertRecord:
        alert = await self._require_alert(alert_id)
        requester = CurrentUser(id=requester_id, role=requester_role)
        ensure_permitted(Action.MUTATE, requester, alert)
        return alert
