"""Data models for decoded measurements."""

from .measurement import (
    BloodPressureUser,
    BloodPressureMeasurement,
    BodyCompositionMeasurement,
)
