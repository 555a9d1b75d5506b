"""
Enums Module
============

This module provides enumeration types for the SensorHub application.
Enums ensure type safety and consistency across the codebase.
"""

from sensorhub.enums.device import (
    AlertSeverity,
    AlertType,
    CalibrationStatus,
    DeviceHealthLevel,
    DeviceStatus,
    SensorHealthStatus,
)

__all__ = [
    "AlertSeverity",
    "AlertType",
    "CalibrationStatus",
    "DeviceHealthLevel",
    "DeviceStatus",
    "SensorHealthStatus",
]
