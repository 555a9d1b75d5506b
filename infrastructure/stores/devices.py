"""
In-memory Device Store
======================

Thread-safe registry of Device entities. All public methods run under the
store's re-entrant lock; callers that need several operations to be atomic
(the device delete cascade, sensor registration) hold :attr:`DeviceStore.lock`
around them.

Lock order across stores: device store lock, then a sensor lock, then the
sensor registry lock.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from typing import Any, Collection, Mapping

from infrastructure.stores.pagination import PaginatedResponse, PaginationParams
from sensorhub.domain.devices import Device
from sensorhub.domain.exceptions import ConflictError, NotFoundError
from sensorhub.enums import DeviceStatus
from sensorhub.utils.concurrency import synchronized

logger = logging.getLogger(__name__)


def new_device_id() -> str:
    return f"device_{uuid.uuid4().hex}"


class DeviceStore:
    """Owns Device entities; returns detached snapshots to callers."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._devices: dict[str, Device] = {}

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def _require(self, device_id: str) -> Device:
        device = self._devices.get(device_id)
        if device is None:
            raise NotFoundError(f"Device {device_id} not found", detail={"deviceId": device_id})
        return device

    @synchronized
    def register(self, device: Device) -> str:
        """
        Add a device, assigning an id when it has none.

        Raises:
            ConflictError: If a device with the same id already exists
        """
        if not device.id:
            device.id = new_device_id()
        if device.id in self._devices:
            raise ConflictError(f"Device {device.id} already exists", detail={"deviceId": device.id})
        self._devices[device.id] = device
        logger.info("Device registered: %s (%s)", device.name, device.id)
        return device.id

    @synchronized
    def get(self, device_id: str) -> Device:
        return self._require(device_id).snapshot()

    @synchronized
    def exists(self, device_id: str) -> bool:
        return device_id in self._devices

    @synchronized
    def all(self) -> list[Device]:
        return [device.snapshot() for device in self._devices.values()]

    @synchronized
    def list(
        self,
        params: PaginationParams,
        *,
        type: str | None = None,
        status: str | None = None,
        device_ids: Collection[str] | None = None,
    ) -> PaginatedResponse:
        """
        Filter devices conjunctively and return one page, in registration order.

        ``device_ids`` restricts the result to the given ids (used for the
        sensor-category filter); None means no restriction.
        """
        matches = [
            device
            for device in self._devices.values()
            if (type is None or device.type == type)
            and (status is None or device.status == status)
            and (device_ids is None or device.id in device_ids)
        ]
        page = PaginatedResponse.paginate(matches, params)
        page.items = [device.snapshot() for device in page.items]
        return page

    @synchronized
    def update(self, device_id: str, changes: Mapping[str, Any], now: datetime) -> Device:
        device = self._require(device_id)
        device.apply_patch(changes, now)
        logger.info("Device updated: %s", device_id)
        return device.snapshot()

    @synchronized
    def remove(self, device_id: str) -> Device:
        device = self._require(device_id)
        del self._devices[device_id]
        logger.info("Device removed: %s (%s)", device.name, device_id)
        return device

    @synchronized
    def touch(self, device_id: str, seen_at: datetime) -> bool:
        """Advance ``lastSeen``; a device deleted meanwhile is ignored."""
        device = self._devices.get(device_id)
        if device is None:
            return False
        return device.touch(seen_at)

    @synchronized
    def status_counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in DeviceStatus}
        for device in self._devices.values():
            counts[device.status.value] += 1
        counts["total"] = len(self._devices)
        return counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._devices)
