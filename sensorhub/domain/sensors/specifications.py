"""
Sensor Specifications Value Object
==================================
Immutable hardware specification of a sensor.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping

from sensorhub.domain.exceptions import ValidationError


def _default_operating_conditions() -> dict[str, list[float]]:
    return {"temperature": [-40.0, 85.0], "humidity": [0.0, 100.0]}


def _default_power_requirements() -> dict[str, float]:
    return {"voltage": 3.3, "current": 0.01, "powerConsumption": 0.033}


@dataclass(frozen=True)
class SensorSpecifications:
    """
    Immutable sensor specification.
    ``sampling_rate_hz`` drives the expected ingestion interval used by the
    health engine.
    """

    range: tuple[float, float] = (0.0, 100.0)
    precision: float = 0.1
    accuracy: float = 1.0
    resolution: float = 0.01
    response_time_ms: float = 1000.0
    sampling_rate_hz: float = 1.0
    operating_conditions: Mapping[str, Any] = field(default_factory=_default_operating_conditions)
    power_requirements: Mapping[str, Any] = field(default_factory=_default_power_requirements)

    def __post_init__(self):
        if self.sampling_rate_hz is None or self.sampling_rate_hz <= 0:
            raise ValidationError(
                "samplingRateHz must be greater than 0",
                detail={"samplingRateHz": self.sampling_rate_hz},
            )
        low, high = self.range
        if low > high:
            raise ValidationError(
                "range minimum must not exceed range maximum",
                detail={"range": [low, high]},
            )
        # Normalise lists from JSON into a tuple
        object.__setattr__(self, "range", (float(low), float(high)))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "SensorSpecifications":
        """Build from a partial mapping keyed by attribute name."""
        if not raw:
            return cls()
        known = {f.name: raw[f.name] for f in fields(cls) if raw.get(f.name) is not None}
        return cls(**known)

    def merged(self, changes: Mapping[str, Any]) -> "SensorSpecifications":
        """Return a copy with ``changes`` applied (re-validated)."""
        known = {f.name: changes[f.name] for f in fields(self) if changes.get(f.name) is not None}
        return replace(self, **known)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "range": list(self.range),
            "precision": self.precision,
            "accuracy": self.accuracy,
            "resolution": self.resolution,
            "responseTimeMs": self.response_time_ms,
            "samplingRateHz": self.sampling_rate_hz,
            "operatingConditions": dict(self.operating_conditions),
            "powerRequirements": dict(self.power_requirements),
        }
