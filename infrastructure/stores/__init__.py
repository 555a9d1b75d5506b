"""
In-memory Stores
================
Thread-safe device and sensor registries plus shared pagination helpers.
"""

from infrastructure.stores.base import DeviceRepository, SensorRepository
from infrastructure.stores.devices import DeviceStore
from infrastructure.stores.pagination import PaginatedResponse, PaginationParams
from infrastructure.stores.sensors import SensorStore

__all__ = [
    "DeviceRepository",
    "DeviceStore",
    "PaginatedResponse",
    "PaginationParams",
    "SensorRepository",
    "SensorStore",
]
