"""
Store Protocols
===============

Contracts the services rely on. The in-memory stores in this package
satisfy them structurally; a persistence-backed implementation only needs
to expose the same methods.

Usage in service type hints::

    from infrastructure.stores.base import DeviceRepository


    class MyService:
        def __init__(self, devices: DeviceRepository) -> None: ...
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import TYPE_CHECKING, Any, Collection, Mapping, Protocol, runtime_checkable

if TYPE_CHECKING:
    from infrastructure.stores.pagination import PaginatedResponse, PaginationParams
    from sensorhub.domain.devices import Device
    from sensorhub.domain.sensors import Sensor


@runtime_checkable
class DeviceRepository(Protocol):
    """Owns Device entities."""

    @property
    def lock(self) -> AbstractContextManager: ...

    def register(self, device: "Device") -> str: ...

    def get(self, device_id: str) -> "Device": ...

    def exists(self, device_id: str) -> bool: ...

    def all(self) -> list["Device"]: ...

    def list(
        self,
        params: "PaginationParams",
        *,
        type: str | None = None,
        status: str | None = None,
        device_ids: Collection[str] | None = None,
    ) -> "PaginatedResponse": ...

    def update(self, device_id: str, changes: Mapping[str, Any], now: datetime) -> "Device": ...

    def remove(self, device_id: str) -> "Device": ...

    def touch(self, device_id: str, seen_at: datetime) -> bool: ...

    def status_counts(self) -> dict[str, int]: ...


@runtime_checkable
class SensorRepository(Protocol):
    """Owns Sensor entities and their per-sensor locks."""

    def register(self, sensor: "Sensor") -> str: ...

    def resolve(self, sensor_id: str) -> "Sensor": ...

    def get(self, sensor_id: str) -> "Sensor": ...

    def lock_for(self, sensor_id: str) -> AbstractContextManager: ...

    def all(self, device_id: str | None = None) -> list["Sensor"]: ...

    def device_ids_with_category(self, category: str) -> set[str]: ...

    def list(
        self,
        params: "PaginationParams",
        *,
        device_id: str | None = None,
        type: str | None = None,
        category: str | None = None,
    ) -> "PaginatedResponse": ...

    def update(self, sensor_id: str, changes: Mapping[str, Any], now: datetime) -> "Sensor": ...

    def delete(self, sensor_id: str) -> "Sensor": ...

    def remove_for_device(self, device_id: str) -> int: ...

    def health_counts(self) -> dict[str, int]: ...


__all__ = ["DeviceRepository", "SensorRepository"]
