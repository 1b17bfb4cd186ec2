"""
gateway/constants.py

Clinical threshold constants used by the threshold evaluator.
All clinical numeric values must be referenced from this module.
"""

# ── Glucose thresholds (mg/dL) ───────────────────────────────
GLUCOSE_FASTING_LOW: float = 70
GLUCOSE_FASTING_HIGH: float = 126
GLUCOSE_RANDOM_HIGH: float = 200  # also the critical line for fasting readings

# ── Blood pressure thresholds (mmHg) ─────────────────────────
SYSTOLIC_LOW: float = 90
SYSTOLIC_HIGH: float = 140
SYSTOLIC_CRITICAL: float = 180

DIASTOLIC_LOW: float = 60
DIASTOLIC_HIGH: float = 90
DIASTOLIC_CRITICAL: float = 120

# ── Units ────────────────────────────────────────────────────
GLUCOSE_UNIT: str = "mg/dL"
BLOOD_PRESSURE_UNIT: str = "mmHg"

# ── Real-time event names ────────────────────────────────────
NEW_ALERT_EVENT: str = "new-alert"
