"""
Device-related Enumerations
============================

This module contains all enums related to devices, sensors and their health.
"""

from enum import Enum


class DeviceStatus(str, Enum):
    """Operational status of a device. New devices start offline."""

    ONLINE = "online"
    OFFLINE = "offline"
    DEGRADED = "degraded"
    MAINTENANCE = "maintenance"


class DeviceHealthLevel(str, Enum):
    """Overall health grade reported for a device."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class SensorHealthStatus(str, Enum):
    """Derived three-state sensor health classification."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    FAULTY = "faulty"


class CalibrationStatus(str, Enum):
    """Calibration validity of a sensor"""

    VALID = "valid"
    EXPIRED = "expired"


class AlertType(str, Enum):
    """Sensor alert categories"""

    THRESHOLD = "threshold"
    TREND = "trend"
    ANOMALY = "anomaly"
    SYSTEM = "system"


class AlertSeverity(str, Enum):
    """Sensor alert severity"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
