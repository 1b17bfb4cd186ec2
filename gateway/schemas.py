"""
gateway/schemas.py

Pydantic data models for the gateway layer.
- Reading / AlertCandidate: evaluator input and output
- AlertCreate / AlertUpdate / AlertRecord: alert lifecycle payloads
- AlertEvent: body of the "new-alert" real-time event
- MetricPayload / MetricRecord: health-metric ingestion endpoint
JSON field names are camelCase on the wire.
"""

import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

AlertLevel = Literal["low", "high"]

_BLOOD_PRESSURE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)\s*$")


class Severity(str, Enum):
    """Ordered alert tiers: low < high < critical."""

    LOW = "low"
    HIGH = "high"
    CRITICAL = "critical"


class AlertCategory(str, Enum):
    """Domain of the signal that raised an alert."""

    GLUCOSE = "glucose"
    BLOOD_PRESSURE = "blood_pressure"


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases while accepting field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CurrentUser(BaseModel):
    """Identity decoded from a verified access token."""

    id: int
    role: str = "patient"


class UserRecord(CamelModel):
    """User row as seen by the alerting pipeline."""

    id: int
    name: Optional[str] = None
    role: str = "patient"
    doctor_id: Optional[int] = None


class Reading(CamelModel):
    """A single vital-sign reading; consumed once by the evaluator."""

    glucose: Optional[float] = None
    is_fasting: bool = True
    systolic: Optional[float] = None
    diastolic: Optional[float] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_measurements(self) -> "Reading":
        if (self.systolic is None) != (self.diastolic is None):
            raise ValueError("systolic and diastolic must be given together")
        if self.glucose is None and self.systolic is None:
            raise ValueError("reading carries no glucose or blood pressure value")
        return self


class AlertCandidate(BaseModel):
    """An alert-to-be produced by the evaluator, not yet persisted."""

    category: AlertCategory
    level: AlertLevel
    severity: Severity
    message: str


class AlertCreate(CamelModel):
    """Fields required to persist a new alert."""

    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    user_id: int
    category: str = Field(min_length=1)
    severity: Severity
    level: Optional[AlertLevel] = None
    status: Optional[str] = None


class AlertUpdate(CamelModel):
    """Patch for the fields of an alert that may change after creation."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1)
    message: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)


class AlertRecord(CamelModel):
    """A stored alert as returned by the store and the API."""

    id: int
    title: str
    message: str
    user_id: int
    category: str
    level: Optional[str] = None
    severity: Severity
    status: Optional[str] = None
    is_read: bool = False
    created_at: datetime


class AlertEvent(CamelModel):
    """Payload pushed to real-time channels when an alert is created."""

    id: int
    user_id: int
    category: str
    level: Optional[str] = None
    severity: Severity
    value: Optional[str] = None
    message: str
    timestamp: datetime

    @classmethod
    def from_alert(cls, alert: AlertRecord) -> "AlertEvent":
        return cls(
            id=alert.id,
            user_id=alert.user_id,
            category=alert.category,
            level=alert.level,
            severity=alert.severity,
            value=alert.level,
            message=alert.message,
            timestamp=alert.created_at,
        )


class MetricPayload(CamelModel):
    """Incoming health metric of any type; blood pressure values use "systolic/diastolic"."""

    type: str = Field(min_length=1, max_length=50)
    value: str = Field(min_length=1, max_length=50)
    unit: Optional[str] = None
    recorded_at: Optional[datetime] = None
    notes: Optional[str] = None
    is_fasting: bool = True

    @model_validator(mode="after")
    def _check_value(self) -> "MetricPayload":
        if self.type == "glucose":
            try:
                glucose = float(self.value)
            except ValueError:
                raise ValueError("glucose value must be numeric") from None
            if not math.isfinite(glucose):
                raise ValueError("glucose value must be finite")
        elif self.type == "blood_pressure" and not _BLOOD_PRESSURE_PATTERN.match(self.value):
            raise ValueError("blood pressure value must look like 120/80")
        return self

    def to_reading(self, timestamp: datetime) -> Optional[Reading]:
        """Reading for the alert pipeline, or None for metrics it does not check."""
        if self.type == "glucose":
            return Reading(
                glucose=float(self.value),
                is_fasting=self.is_fasting,
                timestamp=timestamp,
            )
        if self.type != "blood_pressure":
            return None
        match = _BLOOD_PRESSURE_PATTERN.match(self.value)
        return Reading(
            systolic=float(match.group(1)),
            diastolic=float(match.group(2)),
            timestamp=timestamp,
        )


class MetricRecord(CamelModel):
    """Stored health metric together with the alerts it raised."""

    id: int
    user_id: int
    type: str
    value: str
    unit: Optional[str] = None
    recorded_at: datetime
    notes: Optional[str] = None
    alerts: list[AlertRecord] = []
