"""Measurement records decoded from the devices.

Both record types are immutable; build them once from decoded fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class BloodPressureUser(str, Enum):
    """The two user memories of the BM55."""

    A = "A"
    B = "B"


@dataclass(frozen=True)
class BloodPressureMeasurement:
    """One stored BM55 reading."""

    systolic: int  # mmHg
    diastolic: int  # mmHg
    pulse_rate: int  # bpm
    resting_indicator: bool
    arrhythmia: bool
    user: BloodPressureUser
    measured_time: datetime  # UTC

    def to_dict(self) -> dict:
        return {
            "measured_time": self.measured_time.isoformat(),
            "systolic": self.systolic,
            "diastolic": self.diastolic,
            "pulse_rate": self.pulse_rate,
            "resting_indicator": self.resting_indicator,
            "arrhythmia": self.arrhythmia,
            "user": self.user.value,
        }

    def values(self) -> tuple[str, ...]:
        """Display values, measured time first."""
        return (
            self.measured_time.isoformat(),
            str(self.systolic),
            str(self.diastolic),
            str(self.pulse_rate),
            str(self.resting_indicator),
            str(self.arrhythmia),
        )

    def __str__(self) -> str:
        return (
            f"BloodPressure(user={self.user.value}, "
            f"{self.systolic}/{self.diastolic} mmHg, pulse={self.pulse_rate}, "
            f"resting={self.resting_indicator}, arrhythmia={self.arrhythmia}, "
            f"measured_time={self.measured_time.isoformat()})"
        )


@dataclass(frozen=True, order=True)
class BodyCompositionMeasurement:
    """One stored BF480 reading.

    Instances order by ``measured_time`` only.
    """

    measured_time: datetime  # UTC
    weight: float = field(compare=False)  # kg
    body_fat: float = field(compare=False)  # %
    water: float = field(compare=False)  # %
    muscles: float = field(compare=False)  # %

    def to_dict(self) -> dict:
        return {
            "measured_time": self.measured_time.isoformat(),
            "weight": self.weight,
            "body_fat": self.body_fat,
            "water": self.water,
            "muscles": self.muscles,
        }

    def values(self) -> tuple[str, ...]:
        """Display values, measured time first."""
        return (
            self.measured_time.isoformat(),
            str(self.weight),
            str(self.body_fat),
            str(self.water),
            str(self.muscles),
        )

    def __str__(self) -> str:
        return (
            f"BodyComposition(weight={self.weight}, body_fat={self.body_fat}%, "
            f"water={self.water}%, muscles={self.muscles}%, "
            f"measured_time={self.measured_time.isoformat()})"
        )
