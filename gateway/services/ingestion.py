"""
gateway/services/ingestion.py

Turns one vital-sign reading into persisted, published alerts.
Candidates are handled one after another; a failure on one candidate is
logged and skipped so the remaining candidates still go through.
"""

import structlog

from gateway.schemas import AlertCreate, AlertEvent, AlertRecord, Reading
from gateway.services.alerts import AlertService
from gateway.services.notification import NotificationBroadcaster
from gateway.services.thresholds import evaluate

logger = structlog.get_logger(__name__)


async def process_readings(
    target_user_id: int,
    reading: Reading,
    broadcaster: NotificationBroadcaster,
    service: AlertService,
) -> list[AlertRecord]:
    """Evaluate a reading, store an alert per candidate and publish each one."""
    candidates = evaluate(reading)
    if not candidates:
        return []

    logger.info(
        "reading_abnormal",
        user_id=target_user_id,
        candidates=len(candidates),
    )

    created: list[AlertRecord] = []
    for candidate in candidates:
        try:
            alert = await service.create_alert(
                AlertCreate(
                    title=f"{candidate.category.value.upper()} Alert",
                    message=candidate.message,
                    user_id=target_user_id,
                    category=candidate.category.value,
                    level=candidate.level,
                    severity=candidate.severity,
                )
            )
        except Exception as exc:
            logger.error(
                "alert_creation_failed",
                user_id=target_user_id,
                category=candidate.category.value,
                severity=candidate.severity.value,
                error=str(exc),
            )
            continue

        broadcaster.publish(AlertEvent.from_alert(alert))
        created.append(alert)

    return created
