"""
Sensor Health Status
====================
Health record kept on every sensor and the scoring engine that maintains it.

``update_health`` is pure: it receives the sensor, the point being ingested
and the current time, and returns a new :class:`SensorHealth`. The caller
commits it only once the whole ingestion step has succeeded.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sensorhub.enums import AlertSeverity, AlertType, CalibrationStatus, SensorHealthStatus
from sensorhub.utils.time import ensure_utc, to_iso

if TYPE_CHECKING:
    from sensorhub.domain.sensors.reading import DataPoint
    from sensorhub.domain.sensors.sensor_entity import Sensor

# Policy constants
STALE_INTERVAL_FACTOR = 5
UPTIME_PENALTY = 5.0
UPTIME_RECOVERY = 1.0
MIN_ACCEPTABLE_ACCURACY = 80.0
ERROR_RATE_STEP = 1.0
ERROR_RATE_DECAY = 0.1
FAULTY_ERROR_RATE = 20.0
DEGRADED_ERROR_RATE = 10.0
DEGRADED_UPTIME = 90.0

PERCENT_MIN = 0.0
PERCENT_MAX = 100.0

_TRANSITION_SEVERITY = {
    SensorHealthStatus.FAULTY: AlertSeverity.CRITICAL,
    SensorHealthStatus.DEGRADED: AlertSeverity.MEDIUM,
    SensorHealthStatus.HEALTHY: AlertSeverity.LOW,
}


def _clamp(value: float) -> float:
    return max(PERCENT_MIN, min(PERCENT_MAX, value))


def derive_status(
    error_rate: float,
    uptime: float,
    calibration_status: CalibrationStatus,
) -> SensorHealthStatus:
    """
    Classify a sensor from its health figures.

    Faulty wins over degraded: an expired calibration or an error rate above
    FAULTY_ERROR_RATE is faulty regardless of uptime.
    """
    if error_rate > FAULTY_ERROR_RATE or calibration_status == CalibrationStatus.EXPIRED:
        return SensorHealthStatus.FAULTY
    if error_rate > DEGRADED_ERROR_RATE or uptime < DEGRADED_UPTIME:
        return SensorHealthStatus.DEGRADED
    return SensorHealthStatus.HEALTHY


@dataclass(frozen=True)
class SensorHealth:
    """Health figures of a sensor; ``status`` is always derived from them."""

    error_rate: float = 0.0
    uptime: float = 100.0
    calibration_status: CalibrationStatus = CalibrationStatus.VALID
    last_reading: datetime | None = None

    @property
    def status(self) -> SensorHealthStatus:
        return derive_status(self.error_rate, self.uptime, self.calibration_status)

    def with_calibration(self, calibration_status: CalibrationStatus) -> "SensorHealth":
        return replace(self, calibration_status=calibration_status)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary"""
        return {
            "status": self.status.value,
            "errorRate": self.error_rate,
            "calibrationStatus": self.calibration_status.value,
            "uptime": self.uptime,
            "lastReading": to_iso(self.last_reading),
        }


def update_health(sensor: "Sensor", point: "DataPoint", now: datetime) -> SensorHealth:
    """
    Compute the health record that results from ingesting ``point``.

    Steps:
    1. lastReading becomes the point timestamp
    2. uptime drops by UPTIME_PENALTY when the point is older than
       STALE_INTERVAL_FACTOR expected sampling intervals, otherwise recovers
       by UPTIME_RECOVERY
    3. calibration is marked expired once ``now`` passes nextCalibration
       (never reset here)
    4. error rate rises by ERROR_RATE_STEP for a low-accuracy or invalid
       point, otherwise decays by ERROR_RATE_DECAY

    Args:
        sensor: Sensor whose current health, specifications and calibration
            are read (not modified)
        point: Reading being ingested
        now: Ingestion time (UTC)

    Returns:
        New SensorHealth; the input sensor is left untouched
    """
    current = sensor.health
    now = ensure_utc(now)
    timestamp = ensure_utc(point.timestamp)

    expected_interval_ms = 1000.0 / sensor.specifications.sampling_rate_hz
    elapsed_ms = (now - timestamp).total_seconds() * 1000.0
    if elapsed_ms > STALE_INTERVAL_FACTOR * expected_interval_ms:
        uptime = _clamp(current.uptime - UPTIME_PENALTY)
    else:
        uptime = _clamp(current.uptime + UPTIME_RECOVERY)

    calibration_status = current.calibration_status
    if now > ensure_utc(sensor.calibration.next_calibration):
        calibration_status = CalibrationStatus.EXPIRED

    quality = point.quality
    if quality.accuracy < MIN_ACCEPTABLE_ACCURACY or not quality.validity:
        error_rate = _clamp(current.error_rate + ERROR_RATE_STEP)
    else:
        error_rate = _clamp(current.error_rate - ERROR_RATE_DECAY)

    return SensorHealth(
        error_rate=error_rate,
        uptime=uptime,
        calibration_status=calibration_status,
        last_reading=timestamp,
    )


@dataclass(frozen=True)
class SensorAlert:
    """Alert record attached to a sensor."""

    type: AlertType
    severity: AlertSeverity
    message: str
    timestamp: datetime
    condition: dict[str, Any] = field(default_factory=dict)
    acknowledged: bool = False
    resolved: bool = False
    id: str = field(default_factory=lambda: f"alert_{uuid.uuid4().hex}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "condition": dict(self.condition),
            "timestamp": to_iso(self.timestamp),
            "acknowledged": self.acknowledged,
            "resolved": self.resolved,
        }


def transition_alert(
    sensor_name: str,
    previous: SensorHealth,
    current: SensorHealth,
    now: datetime,
) -> SensorAlert | None:
    """Return a system alert when the derived status changed, else None."""
    old_status, new_status = previous.status, current.status
    if old_status == new_status:
        return None
    return SensorAlert(
        type=AlertType.SYSTEM,
        severity=_TRANSITION_SEVERITY[new_status],
        message=f"Sensor {sensor_name} health changed from {old_status.value} to {new_status.value}",
        timestamp=now,
        condition={"type": "pattern", "pattern": f"health:{old_status.value}->{new_status.value}"},
    )
