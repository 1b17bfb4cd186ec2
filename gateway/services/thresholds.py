"""
gateway/services/thresholds.py

Threshold evaluation for a single vital-sign reading.
- check_glucose_alert: fasting and random glucose rules
- check_blood_pressure_alert: independent high/critical and low checks
- evaluate: runs every check that applies to a Reading

Pure functions: no state, no I/O. Uses constants from gateway/constants.py.
"""

from gateway.constants import (
    BLOOD_PRESSURE_UNIT,
    DIASTOLIC_CRITICAL,
    DIASTOLIC_HIGH,
    DIASTOLIC_LOW,
    GLUCOSE_FASTING_HIGH,
    GLUCOSE_FASTING_LOW,
    GLUCOSE_RANDOM_HIGH,
    GLUCOSE_UNIT,
    SYSTOLIC_CRITICAL,
    SYSTOLIC_HIGH,
    SYSTOLIC_LOW,
)
from gateway.schemas import AlertCandidate, AlertCategory, Reading, Severity


def _fmt(value: float) -> str:
    return f"{value:g}"


def check_glucose_alert(value: float, is_fasting: bool = True) -> list[AlertCandidate]:
    """
    Evaluate a glucose reading in mg/dL.

    Fasting readings may be low or high (critical above the random limit);
    random readings only raise an alert when critically high.
    """
    candidates: list[AlertCandidate] = []

    if is_fasting:
        if value < GLUCOSE_FASTING_LOW:
            candidates.append(
                AlertCandidate(
                    category=AlertCategory.GLUCOSE,
                    level="low",
                    severity=Severity.CRITICAL,
                    message=f"Glucose reading is dangerously low ({_fmt(value)} {GLUCOSE_UNIT})",
                )
            )
        elif value > GLUCOSE_FASTING_HIGH:
            candidates.append(
                AlertCandidate(
                    category=AlertCategory.GLUCOSE,
                    level="high",
                    severity=(
                        Severity.CRITICAL
                        if value > GLUCOSE_RANDOM_HIGH
                        else Severity.HIGH
                    ),
                    message=f"Glucose reading is elevated ({_fmt(value)} {GLUCOSE_UNIT})",
                )
            )
    elif value > GLUCOSE_RANDOM_HIGH:
        candidates.append(
            AlertCandidate(
                category=AlertCategory.GLUCOSE,
                level="high",
                severity=Severity.CRITICAL,
                message=f"Glucose reading is dangerously high ({_fmt(value)} {GLUCOSE_UNIT})",
            )
        )

    return candidates


def check_blood_pressure_alert(systolic: float, diastolic: float) -> list[AlertCandidate]:
    """
    Evaluate a blood pressure reading in mmHg.

    The high check yields at most one candidate, critical taking precedence.
    The low check is independent, so one reading can yield both.
    """
    candidates: list[AlertCandidate] = []
    reading = f"{_fmt(systolic)}/{_fmt(diastolic)} {BLOOD_PRESSURE_UNIT}"

    if systolic >= SYSTOLIC_CRITICAL or diastolic >= DIASTOLIC_CRITICAL:
        candidates.append(
            AlertCandidate(
                category=AlertCategory.BLOOD_PRESSURE,
                level="high",
                severity=Severity.CRITICAL,
                message=f"Blood pressure is critically high ({reading})",
            )
        )
    elif systolic >= SYSTOLIC_HIGH or diastolic >= DIASTOLIC_HIGH:
        candidates.append(
            AlertCandidate(
                category=AlertCategory.BLOOD_PRESSURE,
                level="high",
                severity=Severity.HIGH,
                message=f"Blood pressure is elevated ({reading})",
            )
        )

    if systolic < SYSTOLIC_LOW or diastolic < DIASTOLIC_LOW:
        candidates.append(
            AlertCandidate(
                category=AlertCategory.BLOOD_PRESSURE,
                level="low",
                severity=Severity.HIGH,
                message=f"Blood pressure is low ({reading})",
            )
        )

    return candidates


def evaluate(reading: Reading) -> list[AlertCandidate]:
    """Return glucose candidates followed by blood pressure candidates."""
    candidates: list[AlertCandidate] = []

    if reading.glucose is not None:
        candidates.extend(check_glucose_alert(reading.glucose, reading.is_fasting))

    if reading.systolic is not None and reading.diastolic is not None:
        candidates.extend(
            check_blood_pressure_alert(reading.systolic, reading.diastolic)
        )

    return candidates
