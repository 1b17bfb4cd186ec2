"""
gateway/routers/metrics.py

POST /health-metrics endpoint.
Stores the submitted reading, then runs it through the alerting pipeline.
"""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, status

from gateway.auth import get_current_user
from gateway.dependencies import get_alert_service, get_broadcaster
from gateway.schemas import CurrentUser, MetricPayload, MetricRecord
from gateway.services.alerts import AlertService
from gateway.services.ingestion import process_readings
from gateway.services.notification import NotificationBroadcaster
from gateway.services.persistence import persist_metric

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health metrics"])


@router.post(
    "/health-metrics",
    response_model=MetricRecord,
    status_code=status.HTTP_201_CREATED,
)
async def create_metric(
    payload: MetricPayload,
    user: CurrentUser = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service),
    broadcaster: NotificationBroadcaster = Depends(get_broadcaster),
) -> MetricRecord:
    """
    Record a health metric for the caller.

    Flow:
    1. Persist the raw metric
    2. Evaluate glucose and blood pressure against clinical thresholds;
       other metric types are stored only
    3. Store and publish one alert per abnormal finding
    """
    recorded_at = payload.recorded_at or datetime.now(timezone.utc)
    logger.info(
        "metric_received",
        user_id=user.id,
        metric_type=payload.type,
        value=payload.value,
    )

    metric = await persist_metric(user.id, payload, recorded_at)
    reading = payload.to_reading(recorded_at)
    alerts = []
    if reading is not None:
        alerts = await process_readings(user.id, reading, broadcaster, service)

    return MetricRecord(
        id=metric.id,
        user_id=metric.user_id,
        type=metric.type,
        value=metric.value,
        unit=metric.unit,
        recorded_at=metric.recorded_at,
        notes=metric.notes,
        alerts=alerts,
    )
