"""
In-memory Sensor Store
======================

Registry of Sensor entities, a ``deviceId`` index and one exclusion lock per
sensor.

Locking:
- the registry lock guards the sensor map and the device index; the only
  lock taken while holding it is the per-sensor lock table's own mutex
- a sensor's lock (``lock_for``) guards its history, health and alerts;
  ingestion holds it while computing and committing a reading
- removal marks the sensor retired under its lock, so a writer that resolved
  the sensor before the removal sees ``retired`` and stops
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from typing import Any, Mapping

from infrastructure.stores.devices import DeviceStore
from infrastructure.stores.pagination import PaginatedResponse, PaginationParams
from sensorhub.domain.exceptions import ConflictError, NotFoundError
from sensorhub.domain.sensors import DEFAULT_HISTORY_CAPACITY, BoundedHistory, Sensor
from sensorhub.enums import SensorHealthStatus
from sensorhub.utils.concurrency import KeyedLocks

logger = logging.getLogger(__name__)


def new_sensor_id() -> str:
    return f"sensor_{uuid.uuid4().hex}"


def _not_found(sensor_id: str) -> NotFoundError:
    return NotFoundError(f"Sensor {sensor_id} not found", detail={"sensorId": sensor_id})


class SensorStore:
    """Owns Sensor entities, indexed by id and by owning device."""

    def __init__(self, devices: DeviceStore, history_capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        self._devices = devices
        self._history_capacity = history_capacity
        self._lock = threading.Lock()
        self._sensors: dict[str, Sensor] = {}
        self._by_device: dict[str, dict[str, None]] = {}
        self._locks = KeyedLocks()

    @property
    def history_capacity(self) -> int:
        return self._history_capacity

    # ------------------------------------------------------------------ #
    # Registration and lookup
    # ------------------------------------------------------------------ #

    def register(self, sensor: Sensor) -> str:
        """
        Add a sensor to a live device.

        The device check and the insertion happen under the device store lock
        so a concurrent device delete cannot leave an orphan.

        Raises:
            NotFoundError: If ``sensor.device_id`` does not name a live device
            ConflictError: If a sensor with the same id already exists
        """
        if not sensor.id:
            sensor.id = new_sensor_id()
        sensor.history = BoundedHistory(self._history_capacity)
        with self._devices.lock:
            if not self._devices.exists(sensor.device_id):
                raise NotFoundError(
                    f"Device {sensor.device_id} not found",
                    detail={"deviceId": sensor.device_id},
                )
            with self._lock:
                if sensor.id in self._sensors:
                    raise ConflictError(f"Sensor {sensor.id} already exists", detail={"sensorId": sensor.id})
                self._sensors[sensor.id] = sensor
                self._by_device.setdefault(sensor.device_id, {})[sensor.id] = None
        logger.info("Sensor registered: %s (%s) on device %s", sensor.name, sensor.id, sensor.device_id)
        return sensor.id

    def resolve(self, sensor_id: str) -> Sensor:
        """
        Return the live sensor entity (not a copy).

        Callers must hold :meth:`lock_for` before touching its mutable state
        and must check ``retired`` once they hold it.
        """
        with self._lock:
            sensor = self._sensors.get(sensor_id)
        if sensor is None:
            raise _not_found(sensor_id)
        return sensor

    def lock_for(self, sensor_id: str) -> threading.Lock:
        """
        Lock guarding one sensor's mutable state.

        Only registered sensors get a shared lock; a removed id gets a private
        one, so callers still reach their ``retired`` check without leaving an
        entry behind.
        """
        with self._lock:
            if sensor_id in self._sensors:
                return self._locks.get(sensor_id)
        return threading.Lock()

    def get(self, sensor_id: str) -> Sensor:
        sensor = self.resolve(sensor_id)
        with self.lock_for(sensor_id):
            if sensor.retired:
                raise _not_found(sensor_id)
            return sensor.snapshot()

    def ids_for_device(self, device_id: str) -> list[str]:
        with self._lock:
            return list(self._by_device.get(device_id, ()))

    def device_ids_with_category(self, category: str) -> set[str]:
        with self._lock:
            return {sensor.device_id for sensor in self._sensors.values() if sensor.category == category}

    def _candidates(self, device_id: str | None = None) -> list[Sensor]:
        with self._lock:
            if device_id is None:
                return list(self._sensors.values())
            return [self._sensors[sid] for sid in self._by_device.get(device_id, ())]

    def _snapshots(self, sensors: list[Sensor]) -> list[Sensor]:
        snapshots = []
        for sensor in sensors:
            with self.lock_for(sensor.id):
                if not sensor.retired:
                    snapshots.append(sensor.snapshot())
        return snapshots

    def all(self, device_id: str | None = None) -> list[Sensor]:
        """Consistent per-sensor snapshots of every (or one device's) sensor."""
        return self._snapshots(self._candidates(device_id))

    def list(
        self,
        params: PaginationParams,
        *,
        device_id: str | None = None,
        type: str | None = None,
        category: str | None = None,
    ) -> PaginatedResponse:
        """Filter sensors conjunctively and return one page, in registration order."""
        matches = [
            sensor
            for sensor in self._snapshots(self._candidates(device_id))
            if (type is None or sensor.type == type) and (category is None or sensor.category == category)
        ]
        return PaginatedResponse.paginate(matches, params)

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def update(self, sensor_id: str, changes: Mapping[str, Any], now: datetime) -> Sensor:
        sensor = self.resolve(sensor_id)
        with self.lock_for(sensor_id):
            if sensor.retired:
                raise _not_found(sensor_id)
            sensor.apply_patch(changes, now)
            logger.info("Sensor updated: %s", sensor_id)
            return sensor.snapshot()

    def _retire(self, sensor: Sensor) -> None:
        # Caller holds the sensor lock
        sensor.retired = True
        with self._lock:
            self._sensors.pop(sensor.id, None)
            siblings = self._by_device.get(sensor.device_id)
            if siblings is not None:
                siblings.pop(sensor.id, None)
                if not siblings:
                    del self._by_device[sensor.device_id]

    def delete(self, sensor_id: str) -> Sensor:
        """Remove one sensor and return its final snapshot."""
        sensor = self.resolve(sensor_id)
        with self.lock_for(sensor_id):
            if sensor.retired:
                raise _not_found(sensor_id)
            snapshot = sensor.snapshot()
            self._retire(sensor)
        self._locks.discard(sensor_id)
        logger.info("Sensor deleted: %s (%s)", sensor.name, sensor_id)
        return snapshot

    def remove_for_device(self, device_id: str) -> int:
        """
        Retire every sensor of ``device_id`` and return how many were removed.

        Callers hold the device store lock so no sensor can be added to the
        device meanwhile. Each sensor disappears atomically under its own
        lock.
        """
        removed = 0
        for sensor_id in self.ids_for_device(device_id):
            with self._lock:
                sensor = self._sensors.get(sensor_id)
            if sensor is None:
                continue
            with self.lock_for(sensor_id):
                if sensor.retired:
                    continue
                self._retire(sensor)
            self._locks.discard(sensor_id)
            removed += 1
        if removed:
            logger.info("Removed %d sensors of device %s", removed, device_id)
        return removed

    # ------------------------------------------------------------------ #
    # Aggregates
    # ------------------------------------------------------------------ #

    def health_counts(self) -> dict[str, int]:
        """Count live sensors per derived health status."""
        counts = {status.value: 0 for status in SensorHealthStatus}
        with self._lock:
            healths = [sensor.health for sensor in self._sensors.values()]
        for health in healths:
            counts[health.status.value] += 1
        return counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._sensors)
