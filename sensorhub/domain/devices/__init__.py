"""
Domain Layer for Device Management
==================================
"""

from sensorhub.domain.devices.device_entity import (
    ConnectionQuality,
    Connectivity,
    Device,
    DeviceHealth,
    DeviceMetadata,
)

__all__ = [
    "ConnectionQuality",
    "Connectivity",
    "Device",
    "DeviceHealth",
    "DeviceMetadata",
]
