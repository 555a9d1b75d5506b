"""
Calibration Data
================
Calibration record of a sensor and its validity window.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timedelta
from typing import Any, Mapping

from sensorhub.domain.exceptions import ValidationError
from sensorhub.enums import CalibrationStatus
from sensorhub.utils.time import ensure_utc, to_iso

DEFAULT_CALIBRATION_PERIOD = timedelta(days=365)
DEFAULT_METHOD = "factory"
DEFAULT_STANDARDS = ("ISO/IEC 17025",)


@dataclass(frozen=True)
class CalibrationData:
    """
    Calibration data for a sensor.
    Invariant: next_calibration is never earlier than last_calibrated.
    """

    last_calibrated: datetime
    next_calibration: datetime
    method: str = DEFAULT_METHOD
    standards: tuple[str, ...] = DEFAULT_STANDARDS
    coefficients: Mapping[str, float] = field(default_factory=dict)
    certified: bool = True
    certification_expiry: datetime | None = None

    def __post_init__(self):
        last = ensure_utc(self.last_calibrated)
        nxt = ensure_utc(self.next_calibration)
        if nxt < last:
            raise ValidationError(
                "nextCalibration must not be earlier than lastCalibrated",
                detail={"lastCalibrated": to_iso(last), "nextCalibration": to_iso(nxt)},
            )
        object.__setattr__(self, "last_calibrated", last)
        object.__setattr__(self, "next_calibration", nxt)
        object.__setattr__(self, "standards", tuple(self.standards))

    @classmethod
    def default(cls, now: datetime) -> "CalibrationData":
        """Factory calibration valid for one year from ``now``."""
        return cls(last_calibrated=now, next_calibration=now + DEFAULT_CALIBRATION_PERIOD)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None, now: datetime) -> "CalibrationData":
        """
        Build from a partial mapping keyed by attribute name.

        A missing ``last_calibrated`` defaults to ``now``; a missing
        ``next_calibration`` to one calibration period after lastCalibrated.
        """
        known = {f.name: raw[f.name] for f in fields(cls) if raw and raw.get(f.name) is not None}
        known.setdefault("last_calibrated", now)
        known.setdefault("next_calibration", ensure_utc(known["last_calibrated"]) + DEFAULT_CALIBRATION_PERIOD)
        return cls(**known)

    def merged(self, changes: Mapping[str, Any]) -> "CalibrationData":
        """Return a copy with ``changes`` applied (re-validated)."""
        known = {f.name: changes[f.name] for f in fields(self) if changes.get(f.name) is not None}
        return replace(self, **known)

    def status_at(self, now: datetime) -> CalibrationStatus:
        if ensure_utc(now) > self.next_calibration:
            return CalibrationStatus.EXPIRED
        return CalibrationStatus.VALID

    def days_until_due(self, now: datetime) -> float:
        return (self.next_calibration - ensure_utc(now)).total_seconds() / 86400.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "lastCalibrated": to_iso(self.last_calibrated),
            "nextCalibration": to_iso(self.next_calibration),
            "method": self.method,
            "standards": list(self.standards),
            "coefficients": dict(self.coefficients),
            "certified": self.certified,
            "certificationExpiry": to_iso(self.certification_expiry),
        }
