"""
Domain Layer for Sensor Management
===================================
Contains business entities, value objects and the health engine.
"""

from sensorhub.domain.sensors.calibration import CalibrationData
from sensorhub.domain.sensors.health_status import (
    SensorAlert,
    SensorHealth,
    derive_status,
    transition_alert,
    update_health,
)
from sensorhub.domain.sensors.history import DEFAULT_HISTORY_CAPACITY, BoundedHistory
from sensorhub.domain.sensors.reading import DEFAULT_UNIT, DataPoint, DataQuality
from sensorhub.domain.sensors.sensor_entity import Sensor
from sensorhub.domain.sensors.specifications import SensorSpecifications

__all__ = [
    "DEFAULT_HISTORY_CAPACITY",
    "DEFAULT_UNIT",
    "BoundedHistory",
    "CalibrationData",
    "DataPoint",
    "DataQuality",
    "Sensor",
    "SensorAlert",
    "SensorHealth",
    "SensorSpecifications",
    "derive_status",
    "transition_alert",
    "update_health",
]
