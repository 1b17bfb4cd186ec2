"""
gateway/services/persistence.py

Alert and user persistence.
- AlertStore: the operations the alert service relies on
- SqlAlertStore: SQLAlchemy 2.0 async implementation

The store holds no business rules. Database errors are logged and re-raised.
"""

from datetime import datetime
from typing import Any, Optional, Protocol

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from db.models import Alert, AsyncSessionLocal, HealthMetric, User
from gateway.schemas import AlertRecord, MetricPayload, UserRecord

logger = structlog.get_logger(__name__)


class AlertStore(Protocol):
    """Persistence collaborator of AlertService."""

    async def find_user_by_id(self, user_id: int) -> Optional[UserRecord]: ...

    async def find_users_assigned_to_doctor(self, doctor_id: int) -> list[UserRecord]: ...

    async def create_alert_row(self, data: dict[str, Any]) -> AlertRecord: ...

    async def find_alert_by_id(self, alert_id: int) -> Optional[AlertRecord]: ...

    async def find_alerts(self, user_ids: Optional[list[int]] = None) -> list[AlertRecord]: ...

    async def update_alert_row(self, alert_id: int, patch: dict[str, Any]) -> None: ...

    async def delete_alert_row(self, alert_id: int) -> None: ...


class SqlAlertStore:
    """AlertStore backed by an async SQLAlchemy session factory."""

    def __init__(self, session_factory=AsyncSessionLocal) -> None:
        self._session_factory = session_factory

    async def find_user_by_id(self, user_id: int) -> Optional[UserRecord]:
        try:
            async with self._session_factory() as session:
                user = await session.get(User, user_id)
                return UserRecord.model_validate(user) if user is not None else None
        except SQLAlchemyError as exc:
            logger.error("user_lookup_failed", user_id=user_id, error=str(exc))
            raise

    async def find_users_assigned_to_doctor(self, doctor_id: int) -> list[UserRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(User).where(User.doctor_id == doctor_id)
                )
                return [UserRecord.model_validate(u) for u in result.scalars()]
        except SQLAlchemyError as exc:
            logger.error("doctor_patients_query_failed", doctor_id=doctor_id, error=str(exc))
            raise

    async def create_alert_row(self, data: dict[str, Any]) -> AlertRecord:
        try:
            async with self._session_factory() as session:
                row = Alert(**data)
                session.add(row)
                await session.commit()
                await session.refresh(row)
                return AlertRecord.model_validate(row)
        except SQLAlchemyError as exc:
            logger.error("alert_insert_failed", user_id=data.get("user_id"), error=str(exc))
            raise

    async def find_alert_by_id(self, alert_id: int) -> Optional[AlertRecord]:
        try:
            async with self._session_factory() as session:
                row = await session.get(Alert, alert_id)
                return AlertRecord.model_validate(row) if row is not None else None
        except SQLAlchemyError as exc:
            logger.error("alert_lookup_failed", alert_id=alert_id, error=str(exc))
            raise

    async def find_alerts(self, user_ids: Optional[list[int]] = None) -> list[AlertRecord]:
        """Return alerts newest first, optionally restricted to some users."""
        stmt = select(Alert).order_by(Alert.created_at.desc(), Alert.id.desc())
        if user_ids is not None:
            stmt = stmt.where(Alert.user_id.in_(user_ids))
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [AlertRecord.model_validate(row) for row in result.scalars()]
        except SQLAlchemyError as exc:
            logger.error("alert_query_failed", user_ids=user_ids, error=str(exc))
            raise

    async def update_alert_row(self, alert_id: int, patch: dict[str, Any]) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(
                    update(Alert).where(Alert.id == alert_id).values(**patch)
                )
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("alert_update_failed", alert_id=alert_id, error=str(exc))
            raise

    async def delete_alert_row(self, alert_id: int) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(Alert).where(Alert.id == alert_id))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("alert_delete_failed", alert_id=alert_id, error=str(exc))
            raise


async def persist_metric(
    user_id: int,
    payload: MetricPayload,
    recorded_at: datetime,
    session_factory=AsyncSessionLocal,
) -> HealthMetric:
    """Insert a health metric row and return it."""
    try:
        async with session_factory() as session:
            record = HealthMetric(
                user_id=user_id,
                type=payload.type,
                value=payload.value,
                unit=payload.unit,
                recorded_at=recorded_at,
                notes=payload.notes,
            )
            session.add(record)
            await session.commit()
            await session.refresh(record)
            logger.info(
                "metric_persisted",
                user_id=user_id,
                metric_type=payload.type,
                recorded_at=str(recorded_at),
            )
            return record
    except SQLAlchemyError as exc:
        logger.error(
            "metric_persist_failed",
            user_id=user_id,
            error=str(exc),
        )
        raise
