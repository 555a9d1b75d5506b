"""
Device Service

Registration, patching and removal of devices and their sensors.

Responsibilities:
- Validate request payloads (pydantic schemas) and apply defaults
- Keep referential integrity: sensors only attach to live devices and a
  device delete removes every sensor it owns
- Paginated listing with conjunctive filters
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping

from infrastructure.stores.base import DeviceRepository, SensorRepository
from infrastructure.stores.pagination import DEFAULT_LIMIT, MAX_LIMIT, PaginatedResponse, PaginationParams
from sensorhub.domain.devices import Connectivity, Device, DeviceMetadata
from sensorhub.domain.devices.device_entity import DEFAULT_CATEGORY
from sensorhub.domain.exceptions import ValidationError
from sensorhub.domain.sensors import CalibrationData, Sensor, SensorHealth, SensorSpecifications
from sensorhub.enums import DeviceStatus
from sensorhub.schemas import (
    CreateDeviceRequest,
    CreateSensorRequest,
    UpdateDeviceRequest,
    UpdateSensorRequest,
    parse_model,
)
from sensorhub.utils.time import utc_now

logger = logging.getLogger(__name__)


class DeviceService:
    """
    Device and sensor registry operations.

    Device deletion holds the device store lock for the whole cascade, so no
    sensor can be registered on the device while its sensors are removed.
    """

    def __init__(
        self,
        devices: DeviceRepository,
        sensors: SensorRepository,
        *,
        clock: Callable[[], datetime] = utc_now,
        default_page_size: int = DEFAULT_LIMIT,
        max_page_size: int = MAX_LIMIT,
    ):
        self.devices = devices
        self.sensors = sensors
        self._clock = clock
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def _page(self, page: int | None, limit: int | None) -> PaginationParams:
        return PaginationParams.from_request(
            page, limit, default_limit=self.default_page_size, max_limit=self.max_page_size
        )

    # ==================== Devices ====================

    def register_device(self, payload: Mapping[str, Any]) -> Device:
        """
        Register a device from a request payload.

        ``name``, ``type`` and ``connectivity.protocol`` are required; the
        device starts offline with default metadata and a ``good`` health
        summary.

        Raises:
            ValidationError: If required fields are missing or malformed
        """
        request = parse_model(CreateDeviceRequest, payload, "Invalid device payload")
        now = self._clock()
        metadata = request.metadata.model_dump(exclude_none=True) if request.metadata else None
        device = Device(
            id="",
            name=request.name,
            type=request.type,
            category=request.category or DEFAULT_CATEGORY,
            status=DeviceStatus.OFFLINE,
            capabilities=request.capabilities,
            location=request.location,
            connectivity=Connectivity.from_mapping(request.connectivity.model_dump(exclude_none=True), now),
            metadata=DeviceMetadata.from_mapping(metadata, now),
            created_at=now,
            updated_at=now,
            last_seen=now,
        )
        device_id = self.devices.register(device)
        return self.devices.get(device_id)

    def get_device(self, device_id: str) -> dict[str, Any]:
        """Device together with its sensors and their count."""
        device = self.devices.get(device_id)
        sensors = self.sensors.all(device_id)
        return {
            "device": device.to_dict(),
            "sensors": [sensor.to_dict(include_data=False) for sensor in sensors],
            "sensorCount": len(sensors),
        }

    def list_devices(
        self,
        *,
        type: str | None = None,
        status: str | None = None,
        sensor_category: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> tuple[PaginatedResponse, dict[str, Any]]:
        """
        List devices matching every given filter.

        Returns:
            (page of Device snapshots, metadata with fleet status counts)
        """
        params = self._page(page, limit)
        if status is not None and status not in {s.value for s in DeviceStatus}:
            raise ValidationError(f"Unknown device status '{status}'", detail={"status": status})
        device_ids = None
        if sensor_category is not None:
            device_ids = self.sensors.device_ids_with_category(sensor_category)
        result = self.devices.list(params, type=type, status=status, device_ids=device_ids)
        counts = self.devices.status_counts()
        metadata = {
            "totalDevices": counts["total"],
            "onlineDevices": counts[DeviceStatus.ONLINE.value],
            "offlineDevices": counts[DeviceStatus.OFFLINE.value],
        }
        return result, metadata

    def update_device(self, device_id: str, payload: Mapping[str, Any]) -> Device:
        request = parse_model(UpdateDeviceRequest, payload, "Invalid device update")
        changes = request.model_dump(exclude_none=True)
        return self.devices.update(device_id, changes, self._clock())

    def delete_device(self, device_id: str) -> dict[str, Any]:
        """
        Delete a device and cascade to all of its sensors.

        Returns:
            dict with ``id``, ``name`` and ``deletedSensorCount``

        Raises:
            NotFoundError: If the device does not exist
        """
        with self.devices.lock:
            device = self.devices.get(device_id)
            deleted = self.sensors.remove_for_device(device_id)
            self.devices.remove(device_id)
        logger.info("Device %s deleted with %d sensors", device_id, deleted)
        return {"id": device.id, "name": device.name, "deletedSensorCount": deleted}

    # ==================== Sensors ====================

    def register_sensor(self, payload: Mapping[str, Any]) -> Sensor:
        """
        Register a sensor on an existing device.

        Raises:
            ValidationError: If required fields are missing, or the
                specifications/calibration break their invariants
            NotFoundError: If ``deviceId`` does not name a live device
        """
        request = parse_model(CreateSensorRequest, payload, "Invalid sensor payload")
        now = self._clock()
        specifications = SensorSpecifications.from_mapping(
            request.specifications.model_dump(exclude_none=True) if request.specifications else None
        )
        calibration = CalibrationData.from_mapping(
            request.calibration.model_dump(exclude_none=True) if request.calibration else None, now
        )
        sensor = Sensor(
            id="",
            device_id=request.device_id,
            name=request.name,
            type=request.type,
            category=request.category,
            specifications=specifications,
            calibration=calibration,
            created_at=now,
            updated_at=now,
            health=SensorHealth(calibration_status=calibration.status_at(now)),
        )
        sensor_id = self.sensors.register(sensor)
        return self.sensors.get(sensor_id)

    def get_sensor(self, sensor_id: str) -> Sensor:
        return self.sensors.get(sensor_id)

    def list_sensors(
        self,
        *,
        device_id: str | None = None,
        type: str | None = None,
        category: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> tuple[PaginatedResponse, dict[str, Any]]:
        """
        List sensors matching every given filter.

        Returns:
            (page of Sensor snapshots, metadata with fleet health counts)
        """
        params = self._page(page, limit)
        result = self.sensors.list(params, device_id=device_id, type=type, category=category)
        counts = self.sensors.health_counts()
        metadata = {
            "totalSensors": sum(counts.values()),
            "healthySensors": counts["healthy"],
            "degradedSensors": counts["degraded"],
            "faultySensors": counts["faulty"],
        }
        return result, metadata

    def update_sensor(self, sensor_id: str, payload: Mapping[str, Any]) -> Sensor:
        """Patch a sensor; a new calibration re-evaluates its calibration status."""
        request = parse_model(UpdateSensorRequest, payload, "Invalid sensor update")
        changes = request.model_dump(exclude_none=True)
        return self.sensors.update(sensor_id, changes, self._clock())

    def delete_sensor(self, sensor_id: str) -> Sensor:
        return self.sensors.delete(sensor_id)
