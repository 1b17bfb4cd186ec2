"""
tests/fixtures.py

Shared test data and helper functions for constructing test payloads.
All tests should use these builders instead of hardcoding test values.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from config import settings
from gateway.schemas import AlertCreate, AlertRecord, Reading, Severity, UserRecord

BASE_TIME = datetime(2025, 7, 8, 9, 0, 0, tzinfo=timezone.utc)

# ── Test users ──────────────────────────────────────────────

ADMIN_ID: int = 100
DOCTOR_ID: int = 200
IDLE_DOCTOR_ID: int = 201
PATIENT_ID: int = 1
OTHER_PATIENT_ID: int = 2
UNASSIGNED_PATIENT_ID: int = 3


def build_users() -> list[UserRecord]:
    return [
        UserRecord(id=ADMIN_ID, name="Ada Admin", role="admin"),
        UserRecord(id=DOCTOR_ID, name="Dr. Grey", role="doctor"),
        UserRecord(id=IDLE_DOCTOR_ID, name="Dr. Idle", role="doctor"),
        UserRecord(id=PATIENT_ID, name="Pat One", role="patient", doctor_id=DOCTOR_ID),
        UserRecord(id=OTHER_PATIENT_ID, name="Pat Two", role="patient", doctor_id=DOCTOR_ID),
        UserRecord(id=UNASSIGNED_PATIENT_ID, name="Pat Three", role="patient"),
    ]


def build_alert_create(
    user_id: int = PATIENT_ID,
    title: str = "GLUCOSE Alert",
    message: str = "Glucose reading is dangerously high (250 mg/dL)",
    category: str = "glucose",
    severity: Severity = Severity.CRITICAL,
    level: Optional[str] = "high",
    status: Optional[str] = None,
) -> AlertCreate:
    """Build an AlertCreate with sensible defaults for testing."""
    return AlertCreate(
        title=title,
        message=message,
        user_id=user_id,
        category=category,
        severity=severity,
        level=level,
        status=status,
    )


def build_reading(
    glucose: Optional[float] = None,
    is_fasting: bool = True,
    systolic: Optional[float] = None,
    diastolic: Optional[float] = None,
) -> Reading:
    return Reading(
        glucose=glucose,
        is_fasting=is_fasting,
        systolic=systolic,
        diastolic=diastolic,
        timestamp=BASE_TIME,
    )


def make_token(user_id: int, role: str) -> str:
    """Sign an access token the way the auth service does."""
    return jwt.encode(
        {"id": user_id, "role": role},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )


def auth_header(user_id: int, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


class FakeAlertStore:
    """In-memory AlertStore; records calls for assertions."""

    def __init__(self, users: Optional[list[UserRecord]] = None) -> None:
        self.users: dict[int, UserRecord] = {u.id: u for u in (users or build_users())}
        self.alerts: dict[int, AlertRecord] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_on_create: set[str] = set()  # categories whose insert fails
        self._next_id = 1

    async def find_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        self.calls.append(("find_user_by_id", user_id))
        return self.users.get(user_id)

    async def find_users_assigned_to_doctor(self, doctor_id: int) -> list[UserRecord]:
        self.calls.append(("find_users_assigned_to_doctor", doctor_id))
        return [u for u in self.users.values() if u.doctor_id == doctor_id]

    async def create_alert_row(self, data: dict[str, Any]) -> AlertRecord:
        self.calls.append(("create_alert_row", data))
        if data["category"] in self.fail_on_create:
            raise RuntimeError("insert failed")
        alert = AlertRecord(
            id=self._next_id,
            created_at=BASE_TIME + timedelta(minutes=self._next_id),
            **data,
        )
        self.alerts[alert.id] = alert
        self._next_id += 1
        return alert

    async def find_alert_by_id(self, alert_id: int) -> Optional[AlertRecord]:
        self.calls.append(("find_alert_by_id", alert_id))
        return self.alerts.get(alert_id)

    async def find_alerts(self, user_ids: Optional[list[int]] = None) -> list[AlertRecord]:
        self.calls.append(("find_alerts", user_ids))
        rows = [
            a for a in self.alerts.values()
            if user_ids is None or a.user_id in user_ids
        ]
        return sorted(rows, key=lambda a: (a.created_at, a.id), reverse=True)

    async def update_alert_row(self, alert_id: int, patch: dict[str, Any]) -> None:
        self.calls.append(("update_alert_row", (alert_id, patch)))
        self.alerts[alert_id] = self.alerts[alert_id].model_copy(update=patch)

    async def delete_alert_row(self, alert_id: int) -> None:
        self.calls.append(("delete_alert_row", alert_id))
        self.alerts.pop(alert_id, None)

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]
