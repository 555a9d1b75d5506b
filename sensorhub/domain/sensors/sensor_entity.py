"""
Sensor Domain Entity
====================
Sensor attached to a device, with its bounded reading history, alerts and
health record.

Mutating methods are called by the stores and the ingestion pipeline while
holding the sensor's lock; readers work on :meth:`Sensor.snapshot` copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sensorhub.domain.sensors.calibration import CalibrationData
from sensorhub.domain.sensors.health_status import SensorAlert, SensorHealth
from sensorhub.domain.sensors.history import BoundedHistory
from sensorhub.domain.sensors.reading import DataPoint
from sensorhub.domain.sensors.specifications import SensorSpecifications
from sensorhub.utils.time import to_iso

# Oldest transition alerts are dropped beyond this many per sensor
MAX_SENSOR_ALERTS = 100


@dataclass
class Sensor:
    """
    Domain entity for a sensor.
    ``retired`` is set when the sensor is removed from its store, so an
    ingestion that already resolved it cannot write to it afterwards.
    """

    id: str
    device_id: str
    name: str
    type: str
    category: str
    specifications: SensorSpecifications
    calibration: CalibrationData
    created_at: datetime
    updated_at: datetime
    history: BoundedHistory = field(default_factory=BoundedHistory)
    health: SensorHealth = field(default_factory=SensorHealth)
    alerts: list[SensorAlert] = field(default_factory=list)
    retired: bool = field(default=False, repr=False)

    @property
    def status(self):
        return self.health.status

    def record(self, point: DataPoint, health: SensorHealth, alert: SensorAlert | None = None) -> None:
        """Commit one ingested point together with its computed health."""
        self.history.append(point)
        self.health = health
        if alert is not None:
            self.alerts.append(alert)
            if len(self.alerts) > MAX_SENSOR_ALERTS:
                del self.alerts[:-MAX_SENSOR_ALERTS]

    def apply_patch(self, changes: dict[str, Any], now: datetime) -> None:
        """
        Apply a partial update.

        ``specifications`` and ``calibration`` are partial mappings merged into
        the current values (and re-validated). A calibration change
        re-evaluates the calibration status against ``now``, so a
        recalibrated sensor becomes valid again.

        Raises:
            ValidationError: If a merged value breaks its invariants; the
                sensor is left unchanged
        """
        specifications = self.specifications
        if changes.get("specifications"):
            specifications = specifications.merged(changes["specifications"])
        calibration = self.calibration
        if changes.get("calibration"):
            calibration = calibration.merged(changes["calibration"])

        for name in ("name", "type", "category"):
            if changes.get(name) is not None:
                setattr(self, name, changes[name])
        self.specifications = specifications
        if calibration is not self.calibration:
            self.calibration = calibration
            self.health = self.health.with_calibration(calibration.status_at(now))
        self.updated_at = now

    def snapshot(self) -> "Sensor":
        """Detached copy (history, alerts and health included)."""
        return Sensor(
            id=self.id,
            device_id=self.device_id,
            name=self.name,
            type=self.type,
            category=self.category,
            specifications=self.specifications,
            calibration=self.calibration,
            created_at=self.created_at,
            updated_at=self.updated_at,
            history=BoundedHistory(self.history.capacity, self.history.snapshot()),
            health=self.health,
            alerts=list(self.alerts),
            retired=self.retired,
        )

    def to_dict(self, include_data: bool = True) -> dict[str, Any]:
        """Convert to dictionary"""
        latest = self.history.latest()
        payload = {
            "id": self.id,
            "deviceId": self.device_id,
            "name": self.name,
            "type": self.type,
            "category": self.category,
            "specifications": self.specifications.to_dict(),
            "calibration": self.calibration.to_dict(),
            "dataCount": len(self.history),
            "latestReading": latest.to_dict() if latest else None,
            "alerts": [alert.to_dict() for alert in self.alerts],
            "health": self.health.to_dict(),
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
        }
        if include_data:
            payload["data"] = [point.to_dict() for point in self.history]
        return payload
