"""
Sensor Reading Value Objects
============================
Immutable value objects representing one telemetry reading and its quality
assessment.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Mapping

from sensorhub.utils.time import to_iso

DEFAULT_UNIT = "units"


@dataclass(frozen=True)
class DataQuality:
    """
    Quality assessment attached to a reading.

    Percent fields are on a 0-100 scale. The defaults are the values assumed
    when a caller omits the quality block (or individual fields of it).
    """

    accuracy: float = 95.0
    completeness: float = 100.0
    consistency: float = 95.0
    timeliness: float = 100.0
    validity: bool = True
    confidence: float = 90.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "DataQuality":
        """Build from a partial mapping, filling missing fields with defaults."""
        if not raw:
            return cls()
        known = {f.name: raw[f.name] for f in fields(cls) if raw.get(f.name) is not None}
        return cls(**known)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class DataPoint:
    """
    Immutable sensor reading.
    Represents a single point-in-time reading from a sensor.
    """

    timestamp: datetime
    value: float
    unit: str = DEFAULT_UNIT
    quality: DataQuality = field(default_factory=DataQuality)
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "timestamp": to_iso(self.timestamp),
            "value": self.value,
            "unit": self.unit,
            "quality": self.quality.to_dict(),
            "metadata": dict(self.metadata),
        }
