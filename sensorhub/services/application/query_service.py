"""
Reading Query Service

Read-only, paginated view over the readings held in sensor histories.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from infrastructure.stores.base import DeviceRepository, SensorRepository
from infrastructure.stores.pagination import DEFAULT_READINGS_LIMIT, MAX_LIMIT, PaginatedResponse, PaginationParams
from sensorhub.domain.exceptions import NotFoundError, ValidationError
from sensorhub.utils.time import coerce_datetime, to_iso

logger = logging.getLogger(__name__)

UNKNOWN_DEVICE_NAME = "Unknown"


def _parse_bound(value: datetime | str | None, name: str) -> datetime | None:
    if value is None or value == "":
        return None
    parsed = coerce_datetime(value)
    if parsed is None:
        raise ValidationError(f"{name} must be an ISO-8601 datetime", detail={name: str(value)})
    return parsed


class ReadingQueryService:
    """Lists historical readings across sensors, newest first."""

    def __init__(
        self,
        devices: DeviceRepository,
        sensors: SensorRepository,
        *,
        default_page_size: int = DEFAULT_READINGS_LIMIT,
        max_page_size: int = MAX_LIMIT,
    ):
        self.devices = devices
        self.sensors = sensors
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def _device_name(self, device_id: str, cache: dict[str, str]) -> str:
        if device_id not in cache:
            try:
                cache[device_id] = self.devices.get(device_id).name
            except NotFoundError:
                cache[device_id] = UNKNOWN_DEVICE_NAME
        return cache[device_id]

    def list_readings(
        self,
        *,
        sensor_id: str | None = None,
        device_id: str | None = None,
        start_time: datetime | str | None = None,
        end_time: datetime | str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> tuple[PaginatedResponse, dict[str, Any]]:
        """
        List readings matching every given filter.

        Time bounds are inclusive. Each reading carries ``sensorId``,
        ``sensorName``, ``deviceId`` and ``deviceName`` (``"Unknown"`` when the
        device no longer exists). Equal timestamps keep their history order.

        Returns:
            (page of reading dicts, metadata)

        Raises:
            ValidationError: Invalid pagination or time bounds
        """
        params = PaginationParams.from_request(
            page, limit, default_limit=self.default_page_size, max_limit=self.max_page_size
        )
        start = _parse_bound(start_time, "startTime")
        end = _parse_bound(end_time, "endTime")

        if sensor_id is not None:
            try:
                snapshots = [self.sensors.get(sensor_id)]
            except NotFoundError:
                snapshots = []
            if device_id is not None:
                snapshots = [s for s in snapshots if s.device_id == device_id]
        else:
            snapshots = self.sensors.all(device_id)

        names: dict[str, str] = {}
        rows: list[tuple[datetime, dict[str, Any]]] = []
        for sensor in snapshots:
            device_name = self._device_name(sensor.device_id, names)
            for point in sensor.history:
                if start is not None and point.timestamp < start:
                    continue
                if end is not None and point.timestamp > end:
                    continue
                rows.append(
                    (
                        point.timestamp,
                        {
                            **point.to_dict(),
                            "sensorId": sensor.id,
                            "sensorName": sensor.name,
                            "deviceId": sensor.device_id,
                            "deviceName": device_name,
                        },
                    )
                )

        # sort() is stable with reverse=True
        rows.sort(key=lambda row: row[0], reverse=True)
        result = PaginatedResponse.paginate([row for _, row in rows], params)
        metadata = {
            "totalDataPoints": len(rows),
            "sensorsQueried": len(snapshots),
            "timeRange": {
                "startTime": to_iso(start) if start else "unlimited",
                "endTime": to_iso(end) if end else "unlimited",
            },
        }
        logger.debug("Reading query returned %d of %d points", len(result.items), len(rows))
        return result, metadata
